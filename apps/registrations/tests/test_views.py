from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from parameterized import parameterized
from reversion.models import Revision

from apps.audit.models import AuditEntry
from apps.camps.tests.factories import CampingOptionFactory, JobFactory
from apps.core.tests.factories import ParticipantFactory

from ..models import Registration
from .factories import RegistrationFactory

Status = Registration.Status


class TestRegistrationViews(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.season = timezone.now().year
        cls.job = JobFactory(max_signups=1)
        cls.tent = CampingOptionFactory()

    def setUp(self):
        self.user = ParticipantFactory()
        self.client.force_login(self.user)
        self.url = reverse('registrations:list_create')

    def test_create(self):
        """ Check registering through the API. """
        response = self.client.post(self.url, {
            'season': self.season, 'job_ids': [self.job.pk], 'camping_option_ids': [self.tent.pk],
        })
        self.assertEqual(response.status_code, 201)

        data = response.json()
        reg = Registration.objects.get()
        self.assertEqual(data['id'], reg.pk)
        self.assertEqual(data['participant'], self.user.pk)
        self.assertEqual(data['status'], Status.PENDING)
        self.assertEqual(data['jobs'], [{'id': self.job.pk, 'reserved': True}])
        self.assertEqual(data['camping_options'], [{'id': self.tent.pk, 'reserved': True}])

        with self.subTest("Creates revision"):
            revision = Revision.objects.get()
            self.assertEqual(revision.user, self.user)

    def test_create_already_registered(self):
        """ Check that a second registration is refused with a conflict. """
        RegistrationFactory(participant=self.user, season=self.season)
        response = self.client.post(self.url, {'season': self.season})
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()['code'], 'already_registered')

    def test_create_resource_full(self):
        """ Check that a full resource is reported as a conflict when the request is refused. """
        RegistrationFactory(jobs=[self.job])
        with self.settings(REGISTRATION_CAPACITY_POLICY='reject'):
            response = self.client.post(self.url, {'season': self.season, 'job_ids': [self.job.pk]})
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()['code'], 'resource_full')

    def test_create_waitlisted(self):
        """ Check that a full resource results in a waitlisted registration by default. """
        RegistrationFactory(jobs=[self.job])
        response = self.client.post(self.url, {'season': self.season, 'job_ids': [self.job.pk]})
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()['status'], Status.WAITLISTED)
        self.assertEqual(response.json()['jobs'], [{'id': self.job.pk, 'reserved': False}])

    @parameterized.expand([
        ({},),
        ({'season': 'abc'},),
        ({'season': 1900},),
        ({'season': 2024, 'job_ids': ['x']},),
    ])
    def test_create_invalid(self, data):
        """ Check that malformed requests are refused. """
        response = self.client.post(self.url, data)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['code'], 'invalid')
        self.assertFalse(Registration.objects.exists())

    def test_create_unknown_job(self):
        """ Check that unknown ids are reported as not found. """
        response = self.client.post(self.url, {'season': self.season, 'job_ids': [99999]})
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()['code'], 'not_found')

    def test_login_required(self):
        """ Check that anonymous users cannot register or list. """
        self.client.logout()
        self.assertEqual(self.client.post(self.url, {'season': self.season}).status_code, 403)
        self.assertEqual(self.client.get(self.url).status_code, 403)

    def test_list_own(self):
        """ Check that participants only see their own registrations. """
        own = RegistrationFactory(participant=self.user, season=self.season)
        old = RegistrationFactory(participant=self.user, season=self.season - 1, cancelled=True)
        RegistrationFactory(season=self.season)

        response = self.client.get(self.url)
        self.assertEqual(response.status_code, 200)
        self.assertEqual([r['id'] for r in response.json()['registrations']], [old.pk, own.pk])

        with self.subTest("Filter on season"):
            response = self.client.get(self.url, {'season': self.season - 1})
            self.assertEqual([r['id'] for r in response.json()['registrations']], [old.pk])

        with self.subTest("Filter on status"):
            response = self.client.get(self.url, {'status': Status.PENDING})
            self.assertEqual([r['id'] for r in response.json()['registrations']], [own.pk])

    def test_list_other_participant(self):
        """ Check that participants cannot list someone else's registrations. """
        other = RegistrationFactory()
        response = self.client.get(self.url, {'participant': other.participant.pk})
        self.assertEqual(response.status_code, 403)

    def test_list_as_admin(self):
        """ Check that administrators can list anyone's registrations. """
        admin = ParticipantFactory(permissions=['registrations.view_registration'])
        self.client.force_login(admin)
        reg = RegistrationFactory(participant=self.user)
        RegistrationFactory()

        response = self.client.get(self.url, {'participant': self.user.pk})
        self.assertEqual([r['id'] for r in response.json()['registrations']], [reg.pk])

        response = self.client.get(self.url)
        self.assertEqual(len(response.json()['registrations']), 2)

    def test_list_etag(self):
        """ Check that the list can be cached by the client until something changes. """
        reg = RegistrationFactory(participant=self.user)
        response = self.client.get(self.url)
        etag = response['ETag']

        response = self.client.get(self.url, HTTP_IF_NONE_MATCH=etag)
        self.assertEqual(response.status_code, 304)

        self.client.post(reverse('registrations:cancel', args=(reg.pk,)))
        response = self.client.get(self.url, HTTP_IF_NONE_MATCH=etag)
        self.assertEqual(response.status_code, 200)

    def test_cancel(self):
        """ Check that participants can cancel their own registration. """
        reg = RegistrationFactory(participant=self.user, confirmed=True, jobs=[self.job])
        response = self.client.post(reverse('registrations:cancel', args=(reg.pk,)))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['status'], Status.CANCELLED)
        self.assertEqual(response.json()['jobs'], [])

        with self.subTest("Self-service cancel is not audited"):
            self.assertFalse(AuditEntry.objects.exists())

        with self.subTest("Cancel again"):
            response = self.client.post(reverse('registrations:cancel', args=(reg.pk,)))
            self.assertEqual(response.status_code, 409)
            self.assertEqual(response.json()['code'], 'invalid_transition')

    def test_cancel_stale(self):
        """ Check that a cancel based on an outdated status is refused. """
        reg = RegistrationFactory(participant=self.user, confirmed=True)
        response = self.client.post(reverse('registrations:cancel', args=(reg.pk,)),
                                    {'expected_status': Status.PENDING})
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()['code'], 'stale_status')

    def test_cancel_other(self):
        """ Check that participants cannot cancel someone else's registration. """
        reg = RegistrationFactory()
        response = self.client.post(reverse('registrations:cancel', args=(reg.pk,)))
        self.assertEqual(response.status_code, 404)
        reg.refresh_from_db()
        self.assertEqual(reg.status, Status.PENDING)


class TestRegistrationAdminViews(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.admin = ParticipantFactory(permissions=[
            'registrations.change_registration', 'audit.view_auditentry',
        ])
        cls.job = JobFactory(max_signups=1)

    def setUp(self):
        self.client.force_login(self.admin)

    def test_edit(self):
        """ Check editing a registration as administrator. """
        reg = RegistrationFactory(pending=True)
        response = self.client.post(reverse('registrations:admin_edit', args=(reg.pk,)), {
            'status': Status.CONFIRMED, 'job_ids': [self.job.pk], 'notes': "Manual payment received",
        })
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['status'], Status.CONFIRMED)
        self.assertEqual(response.json()['jobs'], [{'id': self.job.pk, 'reserved': True}])

        entry = AuditEntry.objects.get()
        self.assertEqual(entry.actor, self.admin)
        self.assertEqual(entry.reason, "Manual payment received")

    def test_edit_full(self):
        """ Check that adding a full job is reported as a conflict. """
        RegistrationFactory(confirmed=True, jobs=[self.job])
        reg = RegistrationFactory(confirmed=True)
        response = self.client.post(reverse('registrations:admin_edit', args=(reg.pk,)), {'job_ids': [self.job.pk]})
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()['code'], 'resource_full')

    def test_edit_omitted_jobs_unchanged(self):
        """ Check that omitting job_ids leaves jobs alone, while an empty value removes them. """
        reg = RegistrationFactory(confirmed=True, jobs=[self.job])
        url = reverse('registrations:admin_edit', args=(reg.pk,))

        self.client.post(url, {'notes': "Just a note"})
        self.assertTrue(reg.job_assignments.exists())

        self.client.post(url, {'job_ids': ''})
        self.assertFalse(reg.job_assignments.exists())

    def test_edit_not_found(self):
        response = self.client.post(reverse('registrations:admin_edit', args=(99999,)), {'notes': "?"})
        self.assertEqual(response.status_code, 404)

    def test_cancel(self):
        """ Check cancelling a registration as administrator. """
        reg = RegistrationFactory(confirmed=True)
        response = self.client.post(reverse('registrations:admin_cancel', args=(reg.pk,)), {'reason': "Duplicate"})
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['status'], Status.CANCELLED)
        self.assertEqual(data['refunds'], {'refunded': [], 'failed': [], 'total': 0})
        self.assertEqual(AuditEntry.objects.get().action, AuditEntry.Action.CANCEL)

    def test_audit(self):
        """ Check that the audit trail lists entries newest first. """
        reg = RegistrationFactory(pending=True)
        self.client.post(reverse('registrations:admin_edit', args=(reg.pk,)), {'notes': "First"})
        self.client.post(reverse('registrations:admin_cancel', args=(reg.pk,)), {'reason': "Second"})

        response = self.client.get(reverse('registrations:admin_audit', args=(reg.pk,)))
        self.assertEqual(response.status_code, 200)
        entries = response.json()['entries']
        self.assertEqual([e['reason'] for e in entries], ["Second", "First"])
        self.assertEqual([e['action'] for e in entries], [AuditEntry.Action.CANCEL, AuditEntry.Action.EDIT])
        self.assertEqual(entries[0]['actor'], self.admin.pk)

    @parameterized.expand([
        ('registrations:admin_edit', 'post'),
        ('registrations:admin_cancel', 'post'),
        ('registrations:admin_audit', 'get'),
    ])
    def test_permission_required(self, view, method):
        """ Check that regular participants cannot use the admin views. """
        reg = RegistrationFactory(confirmed=True)
        self.client.force_login(reg.participant)

        response = getattr(self.client, method)(reverse(view, args=(reg.pk,)))
        self.assertEqual(response.status_code, 403)
        reg.refresh_from_db()
        self.assertEqual(reg.status, Status.CONFIRMED)
