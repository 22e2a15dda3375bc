import pytest


@pytest.fixture(autouse=True)
def in_unittest(settings):
    """ Same as campreg.testrunner.CustomRunner, for tests collected by pytest. """
    settings.IN_UNITTEST = True
