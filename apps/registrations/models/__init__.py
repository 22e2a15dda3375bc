from .admission_key import AdmissionKey
from .assignment import RegistrationCampingOption, RegistrationJob
from .registration import Registration

__all__ = ['AdmissionKey', 'Registration', 'RegistrationCampingOption', 'RegistrationJob']
