from io import StringIO

from django.core.management import call_command
from django.test import TestCase

from rides.models import Proposal, ProposalStatus
from rides.tasks import expire_stale_proposals_task
from .helpers import make_proposal, make_provider, make_requester, make_ride


class ProposalSweepEntryPointsTests(TestCase):
	def setUp(self):
		ride = make_ride(make_requester())
		self.stale = make_proposal(ride, make_provider("stale"), expires_in=-1)
		self.fresh = make_proposal(ride, make_provider("fresh"))

	def test_celery_task_runs_sweep(self):
		# .apply() runs the task body eagerly without a broker
		result = expire_stale_proposals_task.apply()

		self.assertEqual(result.get(), 1)
		self.assertEqual(Proposal.objects.get(id=self.stale.id).status, ProposalStatus.EXPIRED)
		self.assertEqual(Proposal.objects.get(id=self.fresh.id).status, ProposalStatus.PENDING)

	def test_management_command_runs_sweep(self):
		out = StringIO()
		call_command("expire_proposals", stdout=out)

		self.assertIn("Expired 1 proposal(s).", out.getvalue())
		self.assertEqual(Proposal.objects.get(id=self.stale.id).status, ProposalStatus.EXPIRED)
