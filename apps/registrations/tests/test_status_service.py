import datetime
import itertools

from django.core import mail
from django.test import TestCase, override_settings
from parameterized import parameterized

from apps.camps.models import Job
from apps.camps.tests.factories import CampingOptionFactory, JobFactory
from apps.core.exceptions import InvalidTransition, ResourceFull, StaleStatus

from ..models import Registration
from ..services import CapacityService, RegistrationStatusService, WaitinglistService
from .factories import RegistrationFactory

Status = Registration.Status


class TestRegistrationStatusService(TestCase):
    @parameterized.expand(itertools.product(Status.values, Status.values))
    def test_transition(self, old, new):
        """ Check that only the allowed status changes are accepted. """
        reg = RegistrationFactory(status=old)
        allowed = new in Registration.TRANSITIONS[old]

        if allowed:
            RegistrationStatusService.transition(reg, old, new)
            self.assertEqual(reg.status, new)
        else:
            with self.assertRaises(InvalidTransition):
                RegistrationStatusService.transition(reg, old, new)

        reg.refresh_from_db()
        self.assertEqual(reg.status, new if allowed else old)

    def test_cancelled_is_final(self):
        """ Check that nothing leaves the CANCELLED status. """
        self.assertEqual(Registration.TRANSITIONS[Status.CANCELLED], ())
        for status in Status.values:
            self.assertFalse(Registration.can_transition(Status.CANCELLED, status))

    def test_transition_timestamps(self):
        """ Check that confirmation and cancellation timestamps are set. """
        reg = RegistrationFactory(pending=True)
        RegistrationStatusService.transition(reg, Status.PENDING, Status.CONFIRMED)
        self.assertIsNotNone(reg.confirmed_at)
        self.assertIsNone(reg.cancelled_at)

        RegistrationStatusService.transition(reg, Status.CONFIRMED, Status.CANCELLED)
        self.assertIsNotNone(reg.confirmed_at)
        self.assertIsNotNone(reg.cancelled_at)

    def test_transition_updates_timestamp(self):
        """ Check that a transition bumps updated_at, which is used for caching. """
        reg = RegistrationFactory(pending=True)
        before = reg.updated_at - datetime.timedelta(minutes=1)
        Registration.objects.filter(pk=reg.pk).update(updated_at=before)
        RegistrationStatusService.transition(reg, Status.PENDING, Status.CONFIRMED)
        self.assertGreater(reg.updated_at, before)

    def test_stale_status(self):
        """ Check that a transition from a status the registration no longer has is refused. """
        reg = RegistrationFactory(pending=True)
        clone = Registration.objects.get(pk=reg.pk)
        RegistrationStatusService.transition(clone, Status.PENDING, Status.CANCELLED)

        with self.assertRaises(StaleStatus):
            RegistrationStatusService.transition(reg, Status.PENDING, Status.CONFIRMED)

        reg.refresh_from_db()
        self.assertEqual(reg.status, Status.CANCELLED)
        self.assertIsNone(reg.confirmed_at)

    def test_concurrent_transitions_one_wins(self):
        """ Check that of two transitions from the same status, only the first one is applied. """
        reg = RegistrationFactory(pending=True)
        clone = Registration.objects.get(pk=reg.pk)

        RegistrationStatusService.transition(reg, Status.PENDING, Status.CONFIRMED)
        with self.assertRaises(StaleStatus):
            RegistrationStatusService.transition(clone, Status.PENDING, Status.CANCELLED)

        reg.refresh_from_db()
        self.assertEqual(reg.status, Status.CONFIRMED)

    def test_cancel_releases_slots(self):
        """ Check that cancelling removes all assignments. """
        job = JobFactory(max_signups=1)
        tent = CampingOptionFactory(max_signups=1)
        reg = RegistrationFactory(confirmed=True, jobs=[job], camping_options=[tent])

        RegistrationStatusService.cancel(reg)

        self.assertEqual(reg.status, Status.CANCELLED)
        self.assertFalse(reg.job_assignments.exists())
        self.assertFalse(reg.camping_option_assignments.exists())
        self.assertTrue(CapacityService.has_capacity(job))
        self.assertTrue(CapacityService.has_capacity(tent))

    def test_cancel_twice(self):
        """ Check that cancelling a cancelled registration is refused. """
        reg = RegistrationFactory(cancelled=True)
        with self.assertRaises(InvalidTransition):
            RegistrationStatusService.cancel(reg)

    def test_cancel_stale(self):
        """ Check that cancel with an outdated expected status is refused. """
        reg = RegistrationFactory(confirmed=True)
        with self.assertRaises(StaleStatus):
            RegistrationStatusService.cancel(reg, expected_status=Status.PENDING)
        reg.refresh_from_db()
        self.assertEqual(reg.status, Status.CONFIRMED)

    def test_confirm_waitlisted_reserves(self):
        """ Check that leaving the waiting list reserves the slots waited for. """
        job = JobFactory(max_signups=1)
        reg = RegistrationFactory(waitlisted=True, waiting_jobs=[job])

        RegistrationStatusService.change_status(reg, Status.CONFIRMED)

        self.assertEqual(reg.status, Status.CONFIRMED)
        self.assertTrue(reg.job_assignments.get().reserved)
        self.assertFalse(CapacityService.has_capacity(job))

    def test_confirm_waitlisted_full(self):
        """ Check that a waitlisted registration cannot leave the waiting list while its resource is full. """
        job = JobFactory(max_signups=1)
        free_job = JobFactory(max_signups=1)
        RegistrationFactory(confirmed=True, jobs=[job])
        reg = RegistrationFactory(waitlisted=True, waiting_jobs=[free_job, job])

        with self.assertRaises(ResourceFull) as cm:
            RegistrationStatusService.change_status(reg, Status.CONFIRMED)
        self.assertEqual(cm.exception.resource, job)

        with self.subTest("Status unchanged"):
            reg.refresh_from_db()
            self.assertEqual(reg.status, Status.WAITLISTED)

        with self.subTest("Nothing reserved, not even the free job"):
            self.assertFalse(reg.job_assignments.reserved().exists())


class TestCapacityService(TestCase):
    def test_used_slots(self):
        """ Check that only reserved slots of active registrations are counted. """
        job = JobFactory(max_signups=3)
        RegistrationFactory(pending=True, jobs=[job])
        RegistrationFactory(confirmed=True, jobs=[job])
        RegistrationFactory(waitlisted=True, waiting_jobs=[job])
        RegistrationFactory(cancelled=True, jobs=[job])

        self.assertEqual(CapacityService.used_slots(job), 2)
        self.assertEqual(Job.objects.with_used_slots().get(pk=job.pk).used_slots, 2)
        self.assertTrue(CapacityService.has_capacity(job))

        RegistrationFactory(confirmed=True, jobs=[job])
        self.assertFalse(CapacityService.has_capacity(job))

    @parameterized.expand([(None,), (0,)])
    def test_unlimited(self, max_signups):
        """ Check that resources without a maximum never fill up. """
        job = JobFactory(max_signups=max_signups)
        RegistrationFactory.create_batch(3, jobs=[job])
        self.assertTrue(CapacityService.has_capacity(job))

    def test_release_returns_reserved(self):
        """ Check that release only reports resources that had a slot reserved. """
        reserved = JobFactory()
        waiting = JobFactory()
        tent = CampingOptionFactory()
        reg = RegistrationFactory(waitlisted=True, jobs=[reserved], waiting_jobs=[waiting], camping_options=[tent])

        self.assertCountEqual(CapacityService.release(reg), [reserved, tent])
        self.assertEqual(CapacityService.assignments(reg), [])


@override_settings(REGISTRATION_WAITLIST_PROMOTION='automatic')
class TestWaitinglistPromotion(TestCase):
    def setUp(self):
        self.job = JobFactory(max_signups=1)
        self.holder = RegistrationFactory(confirmed=True, jobs=[self.job])

    def test_promote_oldest(self):
        """ Check that cancelling promotes the oldest waitlisted registration for the freed job. """
        first = RegistrationFactory(waitlisted=True, waiting_jobs=[self.job])
        second = RegistrationFactory(waitlisted=True, waiting_jobs=[self.job])

        with self.captureOnCommitCallbacks(execute=True):
            RegistrationStatusService.cancel(self.holder)

        first.refresh_from_db()
        second.refresh_from_db()
        self.assertEqual(first.status, Status.PENDING)
        self.assertTrue(first.job_assignments.get().reserved)
        self.assertEqual(second.status, Status.WAITLISTED)
        self.assertFalse(second.job_assignments.get().reserved)

        with self.subTest("Promoted participant is notified"):
            self.assertEqual(len(mail.outbox), 1)
            self.assertEqual(mail.outbox[0].to, [first.participant.email])

    def test_skip_ineligible(self):
        """ Check that a registration also waiting for another (still full) resource is skipped. """
        other_job = JobFactory(max_signups=1)
        RegistrationFactory(confirmed=True, jobs=[other_job])
        blocked = RegistrationFactory(waitlisted=True, waiting_jobs=[self.job, other_job])
        eligible = RegistrationFactory(waitlisted=True, waiting_jobs=[self.job])

        RegistrationStatusService.transition(self.holder, Status.CONFIRMED, Status.CANCELLED)
        promoted = WaitinglistService.promote_for(CapacityService.release(self.holder))

        self.assertEqual(promoted, [eligible])
        eligible.refresh_from_db()
        self.assertEqual(eligible.status, Status.PENDING)
        blocked.refresh_from_db()
        self.assertEqual(blocked.status, Status.WAITLISTED)
        self.assertFalse(blocked.job_assignments.reserved().exists())

    def test_promote_multiple_slots(self):
        """ Check that promotion continues until the resource is full again. """
        self.job.max_signups = 3
        self.job.save()
        waiting = [RegistrationFactory(waitlisted=True, waiting_jobs=[self.job]) for _i in range(3)]

        RegistrationStatusService.cancel(self.holder)

        statuses = [Registration.objects.get(pk=r.pk).status for r in waiting]
        self.assertEqual(statuses, [Status.PENDING] * 3)
        self.assertEqual(CapacityService.used_slots(self.job), 3)

    def test_nobody_waiting(self):
        """ Check that cancelling without a waiting list just frees the slot. """
        RegistrationStatusService.cancel(self.holder)
        self.assertTrue(CapacityService.has_capacity(self.job))

    @override_settings(REGISTRATION_WAITLIST_PROMOTION='manual')
    def test_manual_promotion(self):
        """ Check that nobody is promoted automatically when promotion is manual. """
        waiting = RegistrationFactory(waitlisted=True, waiting_jobs=[self.job])

        RegistrationStatusService.cancel(self.holder)

        waiting.refresh_from_db()
        self.assertEqual(waiting.status, Status.WAITLISTED)
        self.assertTrue(CapacityService.has_capacity(self.job))
