import argparse
import json
from pathlib import Path

from . import __version__
from .config import Settings, load_env
from .errors import InvalidArgument, OrderingViolation, TalentFlowError, TransactionFailure
from .faults import NoFaults
from .logger import get_logger
from .retry import RetryError, exponential_backoff
from .seed import seed_jobs
from .service import JobService
from .store import OrderedJobStore


def build_service(args: argparse.Namespace, settings: Settings, chaos: bool = True) -> JobService:
    db_path = Path(args.db) if args.db else settings.db_path
    fault_hook = settings.fault_hook() if chaos else NoFaults()
    store = OrderedJobStore(db_path, fault_hook=fault_hook)
    return JobService(store)


def _with_retries(settings: Settings, fn):
    """Retry fn on TransactionFailure as many times as configured."""
    if settings.retries <= 0:
        return fn()
    logger = get_logger()

    def _on_retry(attempt, exc, delay):
        logger.warning("Retrying after failed unit of work", attempt=attempt, error=str(exc), delay=delay)

    retrying = exponential_backoff(
        max_retries=settings.retries,
        base_delay=0.2,
        max_delay=2.0,
        exceptions=(TransactionFailure,),
        on_retry=_on_retry,
    )(fn)
    try:
        return retrying()
    except RetryError as e:
        raise e.__cause__


def _print_job(job: dict) -> None:
    print(f"#{job['order']:>3}  [{job['id']}] {job['title']} ({job['slug']})")
    print(f"      status={job['status']} tags={', '.join(job['tags']) or '-'}")


def _parse_tags(raw):
    if raw is None:
        return None
    return [t.strip() for t in raw.split(",") if t.strip()]


def cmd_init(args: argparse.Namespace, settings: Settings) -> None:
    service = build_service(args, settings, chaos=False)
    print(f"Database ready: {service.store.db_path}")


def cmd_seed(args: argparse.Namespace, settings: Settings) -> None:
    service = build_service(args, settings, chaos=False)
    created = seed_jobs(service, count=args.count)
    print(f"Seeded {len(created)} jobs into {service.store.db_path}")


def cmd_list(args: argparse.Namespace, settings: Settings) -> None:
    service = build_service(args, settings)
    result = service.list_jobs(
        search=args.search,
        status=args.status,
        page=args.page,
        page_size=args.page_size,
        sort=args.sort,
    )
    if args.json:
        print(json.dumps(result, indent=2))
        return
    jobs = result["data"]
    if not jobs:
        print("No jobs found.")
        return
    p = result["pagination"]
    print(f"Page {p['page']}/{p['total_pages']} ({p['total_count']} jobs):\n")
    for job in jobs:
        _print_job(job)


def cmd_show(args: argparse.Namespace, settings: Settings) -> None:
    service = build_service(args, settings)
    print(json.dumps(service.get_job(args.id), indent=2))


def cmd_create(args: argparse.Namespace, settings: Settings) -> None:
    service = build_service(args, settings)
    fields = {"title": args.title, "status": args.status}
    tags = _parse_tags(args.tags)
    if tags is not None:
        fields["tags"] = tags
    job = _with_retries(settings, lambda: service.create_job(fields, requested_order=args.order))
    print("Created:")
    _print_job(job)


def cmd_update(args: argparse.Namespace, settings: Settings) -> None:
    service = build_service(args, settings)
    fields = {}
    if args.title is not None:
        fields["title"] = args.title
    if args.status is not None:
        fields["status"] = args.status
    tags = _parse_tags(args.tags)
    if tags is not None:
        fields["tags"] = tags
    if args.order is not None:
        fields["order"] = args.order
    job = _with_retries(settings, lambda: service.update_job(args.id, fields))
    print("Updated:")
    _print_job(job)


def cmd_reorder(args: argparse.Namespace, settings: Settings) -> None:
    service = build_service(args, settings)
    job = _with_retries(settings, lambda: service.reorder_job(args.id, args.from_order, args.to_order))
    print("Moved:")
    _print_job(job)


def cmd_delete(args: argparse.Namespace, settings: Settings) -> None:
    service = build_service(args, settings)
    job = _with_retries(settings, lambda: service.delete_job(args.id))
    print(f"Deleted [{job['id']}] {job['title']} (was #{job['order']})")


def cmd_check(args: argparse.Namespace, settings: Settings) -> None:
    service = build_service(args, settings, chaos=False)
    count = service.verify_ordering()
    print(f"OK: {count} jobs hold orders 1..{count}")


def main(argv=None):
    load_env()
    settings = Settings.from_env()

    parser = argparse.ArgumentParser(prog="talentflow", description="TalentFlow job board store")
    parser.add_argument("--version", action="store_true", help="Show version")
    parser.add_argument("--db", help="Path to SQLite database (or set TALENTFLOW_DB)")

    subparsers = parser.add_subparsers(dest="command")
    ini = subparsers.add_parser("init", help="Create the database and tables")
    ini.set_defaults(func=cmd_init)

    sed = subparsers.add_parser("seed", help="Replace all jobs with generated ones")
    sed.add_argument("--count", type=int, default=25, help="Number of jobs (default 25)")
    sed.set_defaults(func=cmd_seed)

    lst = subparsers.add_parser("list", help="List jobs")
    lst.add_argument("--search", help="Match title or tag (case-insensitive)")
    lst.add_argument("--status", choices=["active", "archived"], help="Filter by status")
    lst.add_argument("--page", type=int, default=1, help="Page number (default 1)")
    lst.add_argument("--page-size", type=int, default=10, help="Jobs per page (default 10)")
    lst.add_argument("--sort", default="order", choices=["order", "title", "created_at", "updated_at"], help="Sort field")
    lst.add_argument("--json", action="store_true", help="Print the raw response")
    lst.set_defaults(func=cmd_list)

    shw = subparsers.add_parser("show", help="Show one job")
    shw.add_argument("id", type=int, help="Job id")
    shw.set_defaults(func=cmd_show)

    crt = subparsers.add_parser("create", help="Create a job, appended or at --order")
    crt.add_argument("--title", required=True, help="Job title")
    crt.add_argument("--status", default="active", choices=["active", "archived"], help="Job status")
    crt.add_argument("--tags", help="Comma-separated tags")
    crt.add_argument("--order", type=int, help="Insert at this position, shifting later jobs down")
    crt.set_defaults(func=cmd_create)

    upd = subparsers.add_parser("update", help="Update a job's fields")
    upd.add_argument("id", type=int, help="Job id")
    upd.add_argument("--title", help="New title (slug is regenerated)")
    upd.add_argument("--status", choices=["active", "archived"], help="New status")
    upd.add_argument("--tags", help="Comma-separated tags (replaces existing)")
    upd.add_argument("--order", type=int, help="Move to this position")
    upd.set_defaults(func=cmd_update)

    rdr = subparsers.add_parser("reorder", help="Move a job from one position to another")
    rdr.add_argument("id", type=int, help="Job id")
    rdr.add_argument("--from", dest="from_order", type=int, required=True, help="Current position of the job")
    rdr.add_argument("--to", dest="to_order", type=int, required=True, help="Target position")
    rdr.set_defaults(func=cmd_reorder)

    dlt = subparsers.add_parser("delete", help="Delete a job and close the gap")
    dlt.add_argument("id", type=int, help="Job id")
    dlt.set_defaults(func=cmd_delete)

    chk = subparsers.add_parser("check", help="Verify orders are exactly 1..N")
    chk.set_defaults(func=cmd_check)

    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return

    get_logger(level=settings.log_level, log_dir=settings.log_dir, enable_console=False)

    if hasattr(args, "func"):
        try:
            args.func(args, settings)
        except InvalidArgument as e:
            print("Invalid:")
            for err in e.errors:
                print(f" - {err}")
            raise SystemExit(2)
        except OrderingViolation as e:
            raise SystemExit(f"Ordering violated: {e.message}")
        except TalentFlowError as e:
            hint = " (nothing changed; safe to retry)" if e.retryable else ""
            raise SystemExit(f"Error [{e.code}]: {e.message}{hint}")
        return

    parser.print_help()


if __name__ == "__main__":
    main()
