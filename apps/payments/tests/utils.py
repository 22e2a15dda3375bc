import datetime
from unittest import mock

from mollie.api.objects.payment import Payment as MolliePayment

from .factories import MollieIdFaker


class MockMollieMixin:
    def setUp(self):
        super().setUp()

        # Create a fresh patch and "database" for each testcase, so things like assert_called work as expected.
        patcher = mock.patch('apps.payments.services.mollie_client')
        self.mollie_client = patcher.start()
        self.addCleanup(patcher.stop)
        self.mollie_id_faker = MollieIdFaker()

        self.mollie_client.payments.get.side_effect = self.mollie_get
        self.mollie_client.payments.create.side_effect = self.mollie_create
        self.mollie_payments = {}

    def mollie_get(self, mollie_id):
        return self.mollie_payments[mollie_id]

    def mollie_create(self, data):
        self.assertRegex(data['amount']['value'], r'^\d+\.\d\d$')
        self.assertEqual(data['amount']['currency'], 'EUR')
        self.assertIn('redirectUrl', data)
        self.assertIn('webhookUrl', data)

        mollie_id = self.mollie_id_faker.generate()
        return self.add_mollie_payment(mollie_id, status='open', **data)

    def add_mollie_payment(self, mollie_id, status, updated_at=None, **kwargs):
        """ Helper for testcase to add a mollie payment object, to be returned by get """
        if updated_at is None:
            updated_at = datetime.datetime.now(datetime.timezone.utc)

        # This probably does not actually include the id in practice, but any valid url probably suffices
        checkout = 'https://mollie.com/somewhere/{}'.format(mollie_id)

        mollie_payment = MolliePayment({
            'id': mollie_id,
            'status': status,
            '{}At'.format(status): updated_at.isoformat(),
            'createdAt': updated_at.isoformat(),
            '_links': {
                'checkout': {'href': checkout},
            },
            **kwargs,
        }, None)

        self.mollie_payments[mollie_id] = mollie_payment
        return mollie_payment
