import argparse
import sys
from pathlib import Path

from .env import load_env

from . import __version__
from .config import Settings
from .database import create_db_engine, get_session, init_database
from .deposits import DepositWorkflow
from .errors import ErrorKind, Outcome
from .money import format_cents
from .payments import JobPaymentWorkflow
from .seed import reset_database, seed_database
from .unit_of_work import unit_of_work_factory


def _settings(args: argparse.Namespace) -> Settings:
    settings = Settings.from_env()
    if args.db:
        settings.db_path = Path(args.db)
    return settings


def _require_db(settings: Settings) -> None:
    if not settings.db_path.exists():
        raise SystemExit(f"Database not found: {settings.db_path} (run 'jobmarket init-db')")


def _uow_factory(settings: Settings):
    _require_db(settings)
    engine = create_db_engine(settings.db_path, busy_timeout=settings.busy_timeout)
    return unit_of_work_factory(engine)


def _report(outcome: Outcome) -> None:
    if outcome.ok:
        print("Status: ok")
        return
    print(f"Status: {outcome.error.value} ({outcome.status_code})")
    if outcome.message:
        print(f"Reason: {outcome.message}")
    raise SystemExit(1 if outcome.error is ErrorKind.INTERNAL else 2)


def cmd_init_db(args: argparse.Namespace) -> None:
    settings = _settings(args)
    init_database(settings.db_path)
    print(f"Initialized {settings.db_path}")


def cmd_seed(args: argparse.Namespace) -> None:
    settings = _settings(args)
    init_database(settings.db_path)
    session = get_session(settings.db_path)
    try:
        if args.reset:
            reset_database(session)
        seed_database(session)
    finally:
        session.close()
    print(f"Seeded {settings.db_path}")


def cmd_balance(args: argparse.Namespace) -> None:
    settings = _settings(args)
    with _uow_factory(settings)() as uow:
        profile = uow.ledger.get_profile(args.profile)
        if profile is None:
            raise SystemExit(f"Profile not found: {args.profile}")
        print(f"{profile.full_name} ({profile.type.value}): {format_cents(profile.balance)}")


def cmd_contract(args: argparse.Namespace) -> None:
    settings = _settings(args)
    with _uow_factory(settings)() as uow:
        contract = uow.ledger.get_contract_for_profile(args.id, args.profile)
        if contract is None:
            raise SystemExit(f"Contract not found: {args.id}")
        print(f"ID: {contract.id}")
        print(f"  Status: {contract.status.value}")
        print(f"  Client: {contract.client_id}")
        print(f"  Contractor: {contract.contractor_id}")
        print(f"  Terms: {contract.terms}")


def cmd_contracts(args: argparse.Namespace) -> None:
    settings = _settings(args)
    with _uow_factory(settings)() as uow:
        contracts = uow.ledger.list_active_contracts(args.profile)
        if not contracts:
            print("No active contracts.")
            return
        print(f"Found {len(contracts)} active contracts:\n")
        for contract in contracts:
            print(f"ID: {contract.id}  status={contract.status.value}  "
                  f"client={contract.client_id}  contractor={contract.contractor_id}")


def cmd_unpaid(args: argparse.Namespace) -> None:
    settings = _settings(args)
    with _uow_factory(settings)() as uow:
        jobs = uow.ledger.list_unpaid_jobs(args.profile)
        if not jobs:
            print("No unpaid jobs.")
            return
        print(f"Found {len(jobs)} unpaid jobs:\n")
        for job in jobs:
            print(f"ID: {job.id}  contract={job.contract_id}  price={format_cents(job.price)}  {job.description}")


def cmd_pay(args: argparse.Namespace) -> None:
    settings = _settings(args)
    workflow = JobPaymentWorkflow(_uow_factory(settings), settings)
    _report(workflow.pay_job(args.job, args.profile))


def cmd_deposit(args: argparse.Namespace) -> None:
    settings = _settings(args)
    workflow = DepositWorkflow(_uow_factory(settings), settings)
    _report(workflow.deposit(args.profile, args.to, args.amount))


def main(argv=None):
    # Load .env if present (JOBMARKET_DB, JOBMARKET_DEPOSIT_CAP_PERCENT, etc.)
    load_env()
    parser = argparse.ArgumentParser(prog="jobmarket", description="Job marketplace ledger CLI")
    parser.add_argument("--version", action="store_true", help="Show version")
    parser.add_argument("--db", help="Path to SQLite database (default: $JOBMARKET_DB or data/jobmarket.db)")

    subparsers = parser.add_subparsers(dest="command")
    ini = subparsers.add_parser("init-db", help="Create the database tables")
    ini.set_defaults(func=cmd_init_db)

    sd = subparsers.add_parser("seed", help="Load the sample profiles, contracts and jobs")
    sd.add_argument("--reset", action="store_true", help="Delete existing rows first")
    sd.set_defaults(func=cmd_seed)

    bal = subparsers.add_parser("balance", help="Show a profile's balance")
    bal.add_argument("--profile", type=int, required=True, help="Profile id")
    bal.set_defaults(func=cmd_balance)

    con = subparsers.add_parser("contract", help="Show a contract the profile is party to")
    con.add_argument("--id", type=int, required=True, help="Contract id")
    con.add_argument("--profile", type=int, required=True, help="Calling profile id")
    con.set_defaults(func=cmd_contract)

    cons = subparsers.add_parser("contracts", help="List non-terminated contracts of a profile")
    cons.add_argument("--profile", type=int, required=True, help="Calling profile id")
    cons.set_defaults(func=cmd_contracts)

    unp = subparsers.add_parser("unpaid", help="List unpaid jobs on active contracts of a profile")
    unp.add_argument("--profile", type=int, required=True, help="Calling profile id")
    unp.set_defaults(func=cmd_unpaid)

    pay = subparsers.add_parser("pay", help="Pay a job as its contract's client")
    pay.add_argument("--job", type=int, required=True, help="Job id")
    pay.add_argument("--profile", type=int, required=True, help="Paying client profile id")
    pay.set_defaults(func=cmd_pay)

    dep = subparsers.add_parser("deposit", help="Deposit money to another profile")
    dep.add_argument("--profile", type=int, required=True, help="Paying profile id")
    dep.add_argument("--to", type=int, required=True, help="Beneficiary profile id")
    dep.add_argument("--amount", required=True, help="Amount, e.g. 25.00")
    dep.set_defaults(func=cmd_deposit)

    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return

    if hasattr(args, "func"):
        args.func(args)
        return

    parser.print_help(sys.stdout)


if __name__ == "__main__":
    main()
