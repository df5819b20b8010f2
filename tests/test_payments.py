"""
Tests for the job payment workflow.
"""

from datetime import datetime

import pytest
from sqlalchemy.exc import OperationalError

from jobmarket.database import Job
from jobmarket.errors import ErrorKind
from jobmarket.payments import JobPaymentWorkflow
from jobmarket.repository import SqlAlchemyLedgerRepository


@pytest.fixture
def workflow(uow_factory, settings):
    return JobPaymentWorkflow(uow_factory, settings)


@pytest.fixture
def job_state(session_factory):
    """Read (paid, payment_date) for a job."""

    def read(job_id):
        session = session_factory()
        try:
            job = session.query(Job).filter_by(id=job_id).one()
            return job.paid, job.payment_date
        finally:
            session.close()

    return read


class TestPayJob:
    """Test the happy path and precondition failures."""

    def test_pays_job(self, workflow, make_marketplace, balance_of, job_state):
        ids = make_marketplace(client_balance=50000, contractor_balance=0, price=20000)
        before = datetime.now()

        outcome = workflow.pay_job(ids["job"], ids["client"])

        assert outcome.ok
        assert balance_of(ids["client"]) == 30000
        assert balance_of(ids["contractor"]) == 20000
        paid, payment_date = job_state(ids["job"])
        assert paid is True
        assert before <= payment_date <= datetime.now()

    def test_insufficient_balance(self, workflow, make_marketplace, balance_of, job_state):
        ids = make_marketplace(client_balance=15000, contractor_balance=0, price=20000)

        outcome = workflow.pay_job(ids["job"], ids["client"])

        assert outcome.error is ErrorKind.INSUFFICIENT_BALANCE
        assert outcome.status_code == 400
        assert balance_of(ids["client"]) == 15000
        assert balance_of(ids["contractor"]) == 0
        assert job_state(ids["job"]) == (False, None)

    def test_second_payment_is_already_paid(self, workflow, make_marketplace, balance_of):
        ids = make_marketplace(client_balance=50000, contractor_balance=0, price=20000)

        first = workflow.pay_job(ids["job"], ids["client"])
        second = workflow.pay_job(ids["job"], ids["client"])

        assert first.ok
        assert second.error is ErrorKind.ALREADY_PAID
        assert second.status_code == 409
        assert balance_of(ids["client"]) == 30000
        assert balance_of(ids["contractor"]) == 20000

    def test_already_paid_checked_before_balance(self, workflow, make_marketplace):
        ids = make_marketplace(client_balance=0, price=20000, paid=True)

        assert workflow.pay_job(ids["job"], ids["client"]).error is ErrorKind.ALREADY_PAID

    def test_missing_job(self, workflow, make_marketplace):
        ids = make_marketplace(client_balance=50000)

        outcome = workflow.pay_job(999, ids["client"])

        assert outcome.error is ErrorKind.NOT_FOUND
        assert outcome.status_code == 404

    def test_contractor_cannot_pay(self, workflow, make_marketplace, balance_of):
        """The contractor is not the client, so the job does not exist for them."""
        ids = make_marketplace(client_balance=50000, contractor_balance=50000)

        outcome = workflow.pay_job(ids["job"], ids["contractor"])

        assert outcome.error is ErrorKind.NOT_FOUND
        assert balance_of(ids["contractor"]) == 50000

    def test_stranger_gets_not_found(self, workflow, make_marketplace, job_state):
        ids = make_marketplace(client_balance=50000)
        other = make_marketplace(client_balance=50000)

        outcome = workflow.pay_job(ids["job"], other["client"])

        assert outcome.error is ErrorKind.NOT_FOUND
        assert job_state(ids["job"]) == (False, None)

    def test_seed_job_payment(self, workflow, seeded, balance_of, job_state):
        """Harry Potter pays job 2 to Linus Torvalds."""
        outcome = workflow.pay_job(2, 1)

        assert outcome.ok
        assert balance_of(1) == 115000 - 20100
        assert balance_of(6) == 121400 + 20100
        assert job_state(2)[0] is True


class TestPayJobAtomicity:
    """Test that storage failures leave nothing behind."""

    def test_failure_after_paid_flag_rolls_back_everything(
        self, workflow, make_marketplace, balance_of, job_state, monkeypatch
    ):
        ids = make_marketplace(client_balance=50000, contractor_balance=0, price=20000)

        def broken_credit(self, profile_id, amount):
            raise OperationalError("UPDATE profiles", {}, Exception("disk I/O error"))

        monkeypatch.setattr(SqlAlchemyLedgerRepository, "credit", broken_credit)

        outcome = workflow.pay_job(ids["job"], ids["client"])

        assert outcome.error is ErrorKind.INTERNAL
        assert outcome.status_code == 500
        assert outcome.message == "Internal server error"
        assert balance_of(ids["client"]) == 50000
        assert balance_of(ids["contractor"]) == 0
        assert job_state(ids["job"]) == (False, None)

    def test_store_timeout_exhausts_retries(
        self, workflow, make_marketplace, balance_of, job_state, monkeypatch, quiet_logger
    ):
        ids = make_marketplace(client_balance=50000, contractor_balance=0, price=20000)
        calls = [0]

        def locked_credit(self, profile_id, amount):
            calls[0] += 1
            raise OperationalError("UPDATE profiles", {}, Exception("database is locked"))

        monkeypatch.setattr(SqlAlchemyLedgerRepository, "credit", locked_credit)

        outcome = workflow.pay_job(ids["job"], ids["client"])

        assert outcome.error is ErrorKind.INTERNAL
        assert calls[0] == 3  # settings.max_retries == 2
        assert quiet_logger.get_metrics()["retries"] == 2
        assert balance_of(ids["client"]) == 50000
        assert job_state(ids["job"]) == (False, None)

    def test_transient_failure_is_retried(
        self, workflow, make_marketplace, balance_of, job_state, monkeypatch
    ):
        ids = make_marketplace(client_balance=50000, contractor_balance=0, price=20000)
        real_credit = SqlAlchemyLedgerRepository.credit
        calls = [0]

        def flaky_credit(self, profile_id, amount):
            calls[0] += 1
            if calls[0] == 1:
                raise OperationalError("UPDATE profiles", {}, Exception("database is locked"))
            return real_credit(self, profile_id, amount)

        monkeypatch.setattr(SqlAlchemyLedgerRepository, "credit", flaky_credit)

        outcome = workflow.pay_job(ids["job"], ids["client"])

        assert outcome.ok
        assert calls[0] == 2
        assert balance_of(ids["client"]) == 30000
        assert balance_of(ids["contractor"]) == 20000
        assert job_state(ids["job"])[0] is True

    def test_error_cause_is_logged_not_returned(
        self, workflow, make_marketplace, monkeypatch, tmp_path
    ):
        from jobmarket.logger import get_logger, reset_logger

        reset_logger()
        logger = get_logger(enable_console=False, enable_file=True, log_dir=tmp_path / "logs")
        workflow.logger = logger
        ids = make_marketplace(client_balance=50000)

        def broken_credit(self, profile_id, amount):
            raise OperationalError("UPDATE profiles", {}, Exception("disk I/O error"))

        monkeypatch.setattr(SqlAlchemyLedgerRepository, "credit", broken_credit)

        outcome = workflow.pay_job(ids["job"], ids["client"])

        assert "disk I/O" not in outcome.message
        log_content = next((tmp_path / "logs").glob("*.log")).read_text()
        assert "pay_job failed" in log_content
        assert "disk I/O error" in log_content
