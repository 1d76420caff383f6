"""
TopBarks backend - reviews cache and resource library

CLI entry point for the scheduled refresh job and the admin operations.
"""

import argparse
import json
import logging
import sys

from src.contact.contact_form import submit_contact
from src.contact.rate_limiter import RateLimiter
from src.orchestrator import ReviewRefreshOrchestrator, MANUAL, SCHEDULED
from src.registry.review_store import ReviewStore
from src.resources.catalog import ResourceCatalog
from src.resources.metadata import ResourceMetadataStore
from src.resources.object_store import LocalObjectStore
from src.sources.google_places import GooglePlacesSource
from src.utils.auth import (
    AuthenticationError,
    ConfigurationError,
    issue_session_token,
    require_session,
    verify_password,
)
from src.utils.storage import FileKeyValueStore, StoreError
import config.settings as settings


def setup_logging(log_level: str = "INFO"):
    """Configure logging for the entire application."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format=settings.LOG_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(settings.LOG_FILE)
        ]
    )


def add_resources_root(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--resources-root",
        default=str(settings.RESOURCES_ROOT),
        help=f"Directory holding the PDFs (default: {settings.RESOURCES_ROOT})"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="TopBarks - reviews cache and resource library",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Scheduled refresh (cron)
  python main.py refresh

  # Manual refresh from the admin
  python main.py login --password "$ADMIN_PASSWORD"
  python main.py refresh --manual --token <token>

  # Show cached reviews
  python main.py show

  # Contact form enquiry
  python main.py contact --name Sam --email sam@example.com --message "Hello"

  # Resource library admin
  python main.py resource-update --token <token> --file "Zylkene.pdf" --category "Health & Medical"
  python main.py category-reorder --token <token> "Puppy Training" "Health & Medical" ...

Note: Set GOOGLE_PLACES_API_KEY and ADMIN_SESSION_SECRET before running.
        """
    )
    parser.add_argument(
        "--data-root",
        default=str(settings.DATA_ROOT),
        help=f"Key-value data directory (default: {settings.DATA_ROOT})"
    )
    parser.add_argument(
        "--log-level",
        default=settings.LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help=f"Logging level (default: {settings.LOG_LEVEL})"
    )

    commands = parser.add_subparsers(dest="command", required=True)

    refresh = commands.add_parser("refresh", help="Fetch Google reviews and merge into the cache")
    refresh.add_argument("--manual", action="store_true", help="Manual trigger (requires --token)")
    refresh.add_argument("--token", help="Admin session token")

    commands.add_parser("show", help="Print cached reviews")
    commands.add_parser("diagnose", help="Test Google Places API connectivity")

    login = commands.add_parser("login", help="Exchange the admin password for a session token")
    login.add_argument("--password", required=True)

    add = commands.add_parser("add-manual", help="Add a manually entered review")
    add.add_argument("--token", required=True)
    add.add_argument("--author", required=True)
    add.add_argument("--rating", required=True, type=int)
    add.add_argument("--text", required=True)
    add.add_argument("--date", required=True, help="Review date (YYYY-MM-DD)")
    add.add_argument("--url")

    update = commands.add_parser("update-manual", help="Edit a manually entered review")
    update.add_argument("--token", required=True)
    update.add_argument("--id", required=True)
    update.add_argument("--author")
    update.add_argument("--rating", type=int)
    update.add_argument("--text")
    update.add_argument("--date")
    update.add_argument("--url")

    delete = commands.add_parser("delete-manual", help="Delete a manually entered review")
    delete.add_argument("--token", required=True)
    delete.add_argument("--id", required=True)

    resources = commands.add_parser("resources", help="List downloadable resources by category")
    add_resources_root(resources)

    download = commands.add_parser("resource-download", help="Copy a resource PDF to a local path")
    add_resources_root(download)
    download.add_argument("--token", required=True)
    download.add_argument("--file", required=True, help="Object key, e.g. 'Zylkene.pdf'")
    download.add_argument("--out", required=True, help="Destination path")

    remove = commands.add_parser("resource-delete", help="Delete a resource and its metadata")
    add_resources_root(remove)
    remove.add_argument("--token", required=True)
    remove.add_argument("--file", required=True)

    resource_update = commands.add_parser("resource-update", help="Set a resource's display name, category or order")
    resource_update.add_argument("--token", required=True)
    resource_update.add_argument("--file", required=True)
    resource_update.add_argument("--display-name")
    resource_update.add_argument("--category")
    resource_update.add_argument("--order", type=int)

    resource_reorder = commands.add_parser("resource-reorder", help="Order the files of a category")
    resource_reorder.add_argument("--token", required=True)
    resource_reorder.add_argument("--category", required=True)
    resource_reorder.add_argument("files", nargs="+", help="Filenames in their new order")

    category_create = commands.add_parser("category-create", help="Add a resource category")
    category_create.add_argument("--token", required=True)
    category_create.add_argument("--name", required=True)

    category_rename = commands.add_parser("category-rename", help="Rename a resource category")
    category_rename.add_argument("--token", required=True)
    category_rename.add_argument("--old-name", required=True)
    category_rename.add_argument("--new-name", required=True)

    category_delete = commands.add_parser("category-delete", help="Delete a category; its files become Uncategorized")
    category_delete.add_argument("--token", required=True)
    category_delete.add_argument("--name", required=True)

    category_reorder = commands.add_parser("category-reorder", help="Set the category display order")
    category_reorder.add_argument("--token", required=True)
    category_reorder.add_argument("categories", nargs="+")

    contact = commands.add_parser("contact", help="Submit a contact form enquiry")
    contact.add_argument("--name", default="")
    contact.add_argument("--email", default="")
    contact.add_argument("--message", default="")
    contact.add_argument("--phone")
    contact.add_argument("--service")
    contact.add_argument("--client-id", default="cli", help="Identifier used for rate limiting")

    export = commands.add_parser("export", help="Export cached reviews to CSV")
    export.add_argument("--output-dir", default=str(settings.OUTPUT_ROOT))

    return parser


def make_catalog(args, kv) -> ResourceCatalog:
    return ResourceCatalog(LocalObjectStore(args.resources_root), ResourceMetadataStore(kv))


def run(args) -> dict:
    """Dispatch a parsed command and return its JSON-able result."""
    kv = FileKeyValueStore(args.data_root)
    store = ReviewStore(kv)
    secret = settings.ADMIN_SESSION_SECRET

    if args.command == "login":
        if not verify_password(args.password, settings.ADMIN_PASSWORD):
            raise AuthenticationError("Invalid password")
        return {"success": True, "token": issue_session_token(secret)}

    if args.command in ("refresh", "diagnose"):
        source = GooglePlacesSource(
            api_key=settings.GOOGLE_PLACES_API_KEY,
            place_id=settings.PLACE_ID
        )
        if args.command == "diagnose":
            return {"success": True, **source.diagnose()}
        orchestrator = ReviewRefreshOrchestrator(source, store, session_secret=secret)
        trigger = MANUAL if args.manual else SCHEDULED
        return orchestrator.refresh(trigger=trigger, session_token=args.token).to_dict()

    if args.command in ("show", "export"):
        orchestrator = ReviewRefreshOrchestrator(source=None, store=store, session_secret=secret)
        if args.command == "show":
            return orchestrator.read_reviews().to_dict()
        return {"success": True, "path": orchestrator.export_report(args.output_dir)}

    if args.command == "resources":
        return {"success": True, **make_catalog(args, kv).list_resources()}

    if args.command == "contact":
        result = submit_contact(
            {
                "name": args.name,
                "email": args.email,
                "message": args.message,
                "phone": args.phone,
                "service": args.service,
            },
            client_id=args.client_id,
            limiter=RateLimiter(
                kv,
                limit=settings.CONTACT_RATE_LIMIT,
                window_seconds=settings.CONTACT_RATE_WINDOW_SECONDS
            )
        )
        return result.to_dict()

    require_session(args.token, secret)

    if args.command == "resource-download":
        content = make_catalog(args, kv).download(args.file)
        if content is None:
            raise KeyError(f"File not found: {args.file}")
        with open(args.out, "wb") as f:
            f.write(content)
        return {"success": True, "path": args.out, "bytes": len(content)}

    if args.command == "resource-delete":
        make_catalog(args, kv).delete(args.file)
        return {"success": True, "message": "File deleted"}

    metadata_store = ResourceMetadataStore(kv)

    if args.command == "resource-update":
        overrides = metadata_store.update_file(
            args.file,
            display_name=args.display_name,
            category=args.category,
            order=args.order
        )
        return {"success": True, "file": args.file, "metadata": overrides}

    if args.command == "resource-reorder":
        metadata_store.reorder(args.category, args.files)
        return {"success": True, "message": "Files reordered"}

    if args.command == "category-create":
        return {"success": True, "categories": metadata_store.create_category(args.name)}

    if args.command == "category-rename":
        return {"success": True, "categories": metadata_store.rename_category(args.old_name, args.new_name)}

    if args.command == "category-delete":
        return {"success": True, "categories": metadata_store.delete_category(args.name)}

    if args.command == "category-reorder":
        return {"success": True, "categories": metadata_store.reorder_categories(args.categories)}

    if args.command == "add-manual":
        review = store.add_manual_review(args.author, args.rating, args.text, args.date, args.url)
        return {"success": True, "message": "Review added", "review": review.to_dict()}

    if args.command == "update-manual":
        store.update_manual_review(
            args.id,
            author=args.author,
            rating=args.rating,
            text=args.text,
            date=args.date,
            url=args.url
        )
        return {"success": True, "message": "Review updated"}

    if args.command == "delete-manual":
        store.delete_manual_review(args.id)
        return {"success": True, "message": "Review deleted"}

    raise ValueError(f"Unknown command: {args.command}")


def main(argv=None):
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    setup_logging(args.log_level)
    logger = logging.getLogger(__name__)

    try:
        result = run(args)
    except AuthenticationError as e:
        logger.warning(f"Rejected {args.command}: {e}")
        print(json.dumps({"success": False, "message": str(e)}))
        sys.exit(1)
    except (ValueError, KeyError) as e:
        message = e.args[0] if isinstance(e, KeyError) and e.args else str(e)
        logger.error(f"{args.command} failed: {message}")
        print(json.dumps({"success": False, "message": message}))
        sys.exit(1)
    except (StoreError, ConfigurationError) as e:
        logger.error(f"{args.command} failed: {e}", exc_info=True)
        print(json.dumps({"success": False, "message": "Server error"}))
        sys.exit(1)

    print(json.dumps(result, indent=2))
    sys.exit(0 if result.get("success", True) else 1)


if __name__ == "__main__":
    main()


# Design Rationale and Trade-offs:
#
# 1. Why JSON on stdout for every command?
#    - The website's admin scripts and cron wrappers parse the same shape
#      the HTTP handlers return ({"success": ..., "message": ...})
#    - Trade-off: less readable than tables for a human at a terminal
#
# 2. Why exit 1 on any unsuccessful result?
#    - Cron and CI treat a failed refresh or rejected token as a failure
#    - Trade-off: a rate limited contact submission also exits 1
#
# 3. Why log to both stdout and file?
#    - stdout: visible in cron mail and terminal runs
#    - file: kept for later debugging
#    - Trade-off: log lines interleave with the JSON output on stdout
