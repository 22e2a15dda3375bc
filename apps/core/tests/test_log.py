import logging

from django.test import SimpleTestCase
from parameterized import parameterized

from campreg.common.log import IgnoreExpectedClientErrors


class TestIgnoreExpectedClientErrors(SimpleTestCase):
    @parameterized.expand([
        (None, True),
        (400, True),
        (403, True),
        (404, False),
        (409, False),
        (500, True),
        (503, True),
    ])
    def test_filter(self, status_code, logged):
        record = logging.LogRecord('django.request', logging.WARNING, __file__, 1, "Response", (), None)
        if status_code is not None:
            record.status_code = status_code
        self.assertEqual(IgnoreExpectedClientErrors().filter(record), logged)
