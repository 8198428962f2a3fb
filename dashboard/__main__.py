"""Command line dashboard - one refresh, printed.

Usage:
    python -m dashboard --provider-code CLINIC123
    python -m dashboard                      # provider saved by a previous run
    python -m dashboard --view archived --sort name --order asc --json
    python -m dashboard log-contact recL1 --type text --outcome no-answer
    python -m dashboard set-status recP1 scheduled
    python -m dashboard invite +15550101 --name Dana

Composition root: wires settings, logging, the record source client and
the state store. Client actions write through the record source and are
followed by a refresh, so the printed list reflects them.
"""

import argparse
import asyncio
import json
import sys
from typing import get_args

from loguru import logger
from pydantic import ValidationError

from .connectors.record_source import RecordSourceClient
from .exceptions import RecordSourceError
from .http_client import close_clients
from .logging_config import setup_logging
from .provider_storage import ProviderStorage
from .schemas.clients import CLIENT_STATUSES, ContactLogEntry, ContactOutcome, ContactType
from .schemas.dashboard import FilterState, PaginationState, SortField, SortState, ViewType
from .services.contact_log_service import (
    archive_client,
    save_contact_log,
    send_scan_invite,
    update_client_notes,
    update_client_status,
    update_facial_analysis_status,
    update_offer_claimed,
)
from .state import DashboardStore
from .utils.provider_helpers import (
    get_form_url,
    get_provider_logo_url,
    get_telehealth_link,
    get_telehealth_scan_link,
)
from .utils.status_formatting import format_client_status, format_facial_status

CLIENT_ACTIONS = ("log-contact", "set-status", "archive", "claim-offer", "analysis-status", "note")


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dashboard", description="Provider dashboard client list")
    parser.add_argument("--provider-code", help="Look up the provider by code (and remember it)")
    parser.add_argument("--forget", action="store_true", help="Clear the saved provider and exit")
    parser.add_argument("--view", choices=get_args(ViewType), default="list")
    parser.add_argument("--search", default="", help="Match name, email or phone")
    parser.add_argument("--source", default="", help="Filter by lead source")
    parser.add_argument("--stage", default="", help="Filter by status (new, contacted, ...)")
    parser.add_argument("--age-min", type=int)
    parser.add_argument("--age-max", type=int)
    parser.add_argument("--sort", choices=get_args(SortField), default="last_contact")
    parser.add_argument("--order", choices=("asc", "desc"), default="desc")
    parser.add_argument("--page", type=_positive_int, default=1)
    parser.add_argument("--per-page", type=_positive_int)
    parser.add_argument("--json", action="store_true", help="Print clients as JSON")
    parser.add_argument("--log-level", help="Override LOG_LEVEL")

    actions = parser.add_subparsers(dest="action", metavar="ACTION")

    p = actions.add_parser("log-contact", help="Record a contact attempt")
    p.add_argument("client_id")
    p.add_argument("--type", choices=get_args(ContactType), default="call")
    p.add_argument("--outcome", choices=get_args(ContactOutcome), default="reached")
    p.add_argument("--notes", default="")

    p = actions.add_parser("set-status", help="Move a client to another pipeline stage")
    p.add_argument("client_id")
    p.add_argument("status", choices=CLIENT_STATUSES)

    p = actions.add_parser("archive", help="Archive a client")
    p.add_argument("client_id")
    p.add_argument("--undo", action="store_true", help="Unarchive instead")

    p = actions.add_parser("claim-offer", help="Mark a lead's offer as claimed")
    p.add_argument("client_id")
    p.add_argument("--undo", action="store_true", help="Mark it unclaimed instead")

    p = actions.add_parser("analysis-status", help="Set a patient's facial analysis status")
    p.add_argument("client_id")
    p.add_argument("status", help='e.g. "Ready", "Patient Reviewed", not-started')

    p = actions.add_parser("note", help="Replace a client's notes")
    p.add_argument("client_id")
    p.add_argument("notes")

    p = actions.add_parser("invite", help="Text the facial-analysis scan link to a phone number")
    p.add_argument("phone")
    p.add_argument("--name", default="")

    actions.add_parser("offers", help="List the available offers")

    p = actions.add_parser("help-request", help="Send a help request to the dashboard team")
    p.add_argument("message")
    p.add_argument("--name", required=True)
    p.add_argument("--email", required=True)
    return parser


def build_selections(
    parser: argparse.ArgumentParser, args: argparse.Namespace
) -> tuple[FilterState, SortState, PaginationState]:
    """Selection models from the parsed flags; invalid combinations exit via parser.error."""
    try:
        filters = FilterState(
            source=args.source,
            lead_stage=args.stage,
            age_min=args.age_min,
            age_max=args.age_max,
        )
        pagination = PaginationState(
            current_page=args.page,
            **({"items_per_page": args.per_page} if args.per_page else {}),
        )
    except ValidationError as e:
        parser.error("; ".join(err["msg"] for err in e.errors()))
    return filters, SortState(field=args.sort, order=args.order), pagination


def format_client_line(client) -> str:
    last = client.last_contact.strftime("%Y-%m-%d") if client.last_contact else "never"
    line = (
        f"{client.id:<20} {client.name[:28]:<28} {format_client_status(client.status):<10} "
        f"last contact {last:<10} ({len(client.contact_history)} contacts)"
    )
    if client.is_patient:
        line += f"  analysis: {format_facial_status(client.facial_analysis_status)}"
    return line


async def resolve_provider(source, storage, provider_code):
    """Provider from ``provider_code`` (saved for next time) or from storage."""
    if provider_code:
        try:
            provider = await source.fetch_provider_by_code(provider_code)
        except RecordSourceError as e:
            logger.error("Provider lookup failed: {}", e)
            return None
        storage.save(provider)
        return provider

    provider = storage.load()
    if provider is None:
        logger.error("No saved provider; pass --provider-code")
    return provider


async def run_provider_action(source, provider, args) -> int:
    """Actions that don't need the client list. Returns the exit status."""
    try:
        if args.action == "offers":
            offers = await source.fetch_offers()
            if args.json:
                print(json.dumps([o.model_dump(mode="json", by_alias=True) for o in offers], indent=2))
            else:
                for offer in offers:
                    print(f"{offer.id:<20} {offer.fields.get('Name') or offer.fields.get('Title') or ''}")
            return 0
        if args.action == "help-request":
            sent = await source.submit_help_request(args.name, args.email, args.message, provider.id)
        else:
            sent = await send_scan_invite(source, provider, args.phone, args.name)
    except RecordSourceError as e:
        logger.error("{} failed: {}", args.action, e)
        return 1
    if not sent:
        logger.error("{} was not accepted by the backend", args.action)
        return 1
    logger.info("{} sent", args.action)
    return 0


async def run_client_action(source, store: DashboardStore, args) -> bool:
    """Apply one client action. Returns False if it could not be applied."""
    client = next((c for c in store.clients if c.id == args.client_id), None)
    if client is None:
        logger.error("No client {} for provider {}", args.client_id, store.provider.id)
        return False

    try:
        if args.action == "log-contact":
            entry = ContactLogEntry(type=args.type, outcome=args.outcome, notes=args.notes)
            await save_contact_log(source, client, entry)
        elif args.action == "set-status":
            await update_client_status(source, client, args.status)
        elif args.action == "archive":
            await archive_client(source, client, not args.undo)
        elif args.action == "claim-offer":
            await update_offer_claimed(source, client, not args.undo)
        elif args.action == "analysis-status":
            if not client.is_patient:
                raise ValueError(f"{client.id} is not a patient")
            await update_facial_analysis_status(source, client.id, args.status)
        elif args.action == "note":
            if not await update_client_notes(source, client, args.notes):
                raise RecordSourceError(f"Notes update for {client.id} was rejected")
    except (RecordSourceError, ValueError) as e:
        logger.error("{} failed for {}: {}", args.action, client.id, e)
        return False
    return True


def print_clients(store: DashboardStore, provider, as_json: bool) -> None:
    page = store.page_clients()
    if as_json:
        print(json.dumps([c.model_dump(mode="json") for c in page], indent=2))
        return
    print(f"{provider.name or provider.id}: {len(store.visible_clients())} clients")
    print(f"  form: {get_form_url(provider)}  scan: {get_telehealth_scan_link(provider)}")
    logo = get_provider_logo_url(provider)
    print(f"  telehealth: {get_telehealth_link(provider)}" + (f"  logo: {logo}" if logo else ""))
    for client in page:
        print(format_client_line(client))


async def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    filters, sort, pagination = build_selections(parser, args)
    setup_logging(args.log_level)

    storage = ProviderStorage()
    if args.forget:
        storage.clear()
        logger.info("Saved provider cleared")
        return 0

    source = RecordSourceClient()
    try:
        provider = await resolve_provider(source, storage, args.provider_code)
        if provider is None:
            return 1
        if args.action in ("offers", "help-request", "invite"):
            return await run_provider_action(source, provider, args)

        store = DashboardStore(source)
        store.set_view(args.view)
        store.set_search_query(args.search)
        store.set_filters(filters)
        store.set_sort(sort)
        store.set_page(pagination.current_page, pagination.items_per_page)

        await store.set_provider(provider)
        if args.action in CLIENT_ACTIONS and not store.error:
            if not await run_client_action(source, store, args):
                return 1
            await store.refresh()
    finally:
        await close_clients()

    if store.error:
        logger.error("Refresh failed: {}", store.error)
        return 1
    if store.last_status == "degraded":
        logger.warning("Contact history unavailable; showing clients without history")

    print_clients(store, provider, args.json)
    return 0


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
