from django.conf import settings
from django.test.runner import DiscoverRunner


class CustomRunner(DiscoverRunner):
    """
    Helper class to allow code to detect that it is ran inside a unittest.

    Payment code checks this to never talk to the real payment provider from tests, even when an API key is
    configured. It seems a custom runner (and using the TEST_RUNNER django setting) is the most reliable way to detect
    this. Taken from https://stackoverflow.com/a/15890649/740048

    When running under pytest, conftest.py sets the same flag.
    """

    def setup_test_environment(self, **kwargs):
        settings.IN_UNITTEST = True
        super().setup_test_environment(**kwargs)
