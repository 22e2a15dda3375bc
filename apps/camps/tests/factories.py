import datetime

import factory

from ..models import CampingOption, Job, Shift


class ShiftFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Shift

    name = factory.Sequence(lambda n: 'Shift %d' % n)
    day = Shift.Day.MONDAY
    start_time = datetime.time(9, 0)
    end_time = datetime.time(13, 0)


class JobFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Job

    name = factory.Sequence(lambda n: 'Job %d' % n)
    shift = factory.SubFactory(ShiftFactory)
    location = factory.Faker('city')
    max_signups = None

    class Params:
        disabled = factory.Trait(enabled=False)


class CampingOptionFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = CampingOption

    name = factory.Sequence(lambda n: 'Camping option %d' % n)
    max_signups = None

    class Params:
        disabled = factory.Trait(enabled=False)
