from .camping_option import CampingOption
from .job import Job
from .shift import Shift

__all__ = ['CampingOption', 'Job', 'Shift']
