#!/usr/bin/env python3
"""
App Store Watch - Monitor App Store apps for new versions across regions.

Looks each tracked app up in a prioritized list of regional storefronts,
compares the version found against saved state and notifies on new apps
and updates.
"""

import argparse
import configparser
import enum
import json
import os
import re
import sys
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from importlib.metadata import version as get_version
from pathlib import Path
from typing import Callable, NamedTuple, Protocol
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import httpx

__version__ = get_version("appstore-watch")

# iTunes catalog endpoints
LOOKUP_URL = "https://itunes.apple.com/{region}/lookup"
APP_URL = "https://apps.apple.com/{region}/app/id{app_id}"
USER_AGENT = f"appstore-watch/{__version__}"

# Defaults
DEFAULT_STATE_DIR = Path("state")
DEFAULT_CONFIG_FILE = Path.home() / ".config" / "appstore-watch" / "config.ini"
DEFAULT_REGIONS = ["us", "cn", "hk", "mo", "tw", "jp", "kr", "sg", "tr"]
DEFAULT_TIMEZONE = "Asia/Shanghai"
DEFAULT_HTTP_TIMEOUT = 30
STATE_FILENAME = "monitored_apps.json"
MAX_WORKERS = 8

# Configuration lookup: APPSTORE_<KEY> env var, then [appstore] in the INI file
CONFIG_SECTION = "appstore"
ENV_PREFIX = "APPSTORE_"

# HTTP client (initialized in main for connection reuse)
_http_client: httpx.Client | None = None

# Exit codes
EXIT_SUCCESS = 0
EXIT_CHANGES = 1
EXIT_ERROR = 2

# Run outcomes
STATUS_UNCONFIGURED = "unconfigured"
STATUS_CLEARED = "cleared"
STATUS_NOOP = "noop"
STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"

NO_RELEASE_NOTES = "No release notes provided."


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

def load_config(path: Path) -> configparser.ConfigParser:
    """Read the INI config file. A missing file yields an empty config."""
    config = configparser.ConfigParser(interpolation=None)
    if path.exists():
        config.read(path)
    return config


def get_setting(name: str, config: configparser.ConfigParser) -> str | None:
    """
    Look up a setting using this precedence:
    1. APPSTORE_<NAME> environment variable
    2. <name> in the [appstore] section of the config file

    Returns None if the setting is not configured.
    """
    if value := os.environ.get(f"{ENV_PREFIX}{name.upper()}"):
        return value
    if config.has_option(CONFIG_SECTION, name):
        return config.get(CONFIG_SECTION, name)
    return None


def parse_app_ids(raw: str | None) -> list[str]:
    """Parse comma-separated app ids, dropping blanks and duplicates."""
    if not raw:
        return []
    ids = []
    for item in raw.split(","):
        app_id = item.strip()
        if app_id and app_id not in ids:
            ids.append(app_id)
    return ids


def parse_regions(raw: str | None) -> tuple[list[str], bool]:
    """
    Parse a comma-separated region order.

    Returns (regions, is_custom). Falls back to DEFAULT_REGIONS when nothing
    usable is configured, so the result is never empty.
    """
    if raw:
        regions = [r.strip().lower() for r in raw.split(",") if r.strip()]
        if regions:
            return regions, True
    return list(DEFAULT_REGIONS), False


def resolve_timezone(name: str | None) -> str:
    """Validate a time zone name, falling back to DEFAULT_TIMEZONE."""
    if not name:
        return DEFAULT_TIMEZONE
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        log.warn(f"Unknown time zone {name!r}, using {DEFAULT_TIMEZONE}")
        return DEFAULT_TIMEZONE
    return name


# ---------------------------------------------------------------------------
# Logging helpers - progress/debug to stderr, report to stdout
# ---------------------------------------------------------------------------

class Logger:
    """Simple logger that respects quiet/verbose flags."""

    def __init__(self, quiet: bool = False, verbose: bool = False):
        self.quiet = quiet
        self.verbose = verbose

    def progress(self, msg: str) -> None:
        """Progress messages (stderr) - suppressed by --quiet."""
        if not self.quiet:
            print(msg, file=sys.stderr)

    def detail(self, msg: str) -> None:
        """Verbose details (stderr) - only shown with --verbose."""
        if self.verbose:
            print(f"  [verbose] {msg}", file=sys.stderr)

    def notice(self, msg: str) -> None:
        """User notifications (stderr) - always shown."""
        print(msg, file=sys.stderr)

    def warn(self, msg: str) -> None:
        """Warnings (stderr) - always shown."""
        print(f"Warning: {msg}", file=sys.stderr)

    def error(self, msg: str) -> None:
        """Errors (stderr) - always shown."""
        print(f"Error: {msg}", file=sys.stderr)


# Global logger instance, set in main()
log = Logger()


# ---------------------------------------------------------------------------
# Version comparison
# ---------------------------------------------------------------------------

_BUILD_SUFFIX = re.compile(r"^(.+?)\s*\((\d+)\)$")
_LEADING_DIGITS = re.compile(r"\s*(\d+)")


class ParsedVersion(NamedTuple):
    parts: tuple[int, ...]
    build: int


def _segment_value(segment: str) -> int:
    # Non-numeric segments count as 0 ("6.x" == "6.0")
    match = _LEADING_DIGITS.match(segment)
    return int(match.group(1)) if match else 0


def parse_version(value) -> ParsedVersion:
    """
    Parse "x.y.z" or "x.y.z(nn)" into dotted parts and a build number.

    "6.8(12)" -> ParsedVersion(parts=(6, 8), build=12)
    """
    text = str(value).strip()
    main = text
    build = 0
    if match := _BUILD_SUFFIX.match(text):
        main = match.group(1).strip()
        build = int(match.group(2))
    parts = tuple(_segment_value(p) for p in main.split("."))
    return ParsedVersion(parts, build)


def compare_versions(a, b) -> int:
    """
    Compare two version strings. Returns 1 if a > b, -1 if a < b, else 0.

    Missing parts count as 0, so "1.2" == "1.2.0". The build number only
    decides when all parts are equal. Never raises: if parsing fails the
    raw strings are compared lexically, which is not version order.
    """
    try:
        x = parse_version(a)
        y = parse_version(b)
    except ValueError:
        a, b = str(a), str(b)
        return 0 if a == b else (1 if a > b else -1)

    length = max(len(x.parts), len(y.parts))
    for i in range(length):
        left = x.parts[i] if i < len(x.parts) else 0
        right = y.parts[i] if i < len(y.parts) else 0
        if left != right:
            return 1 if left > right else -1

    if x.build != y.build:
        return 1 if x.build > y.build else -1
    return 0


# ---------------------------------------------------------------------------
# Catalog lookup
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LookupResult:
    """An app found in a regional storefront."""

    app_id: str
    name: str
    version: str
    release_notes: str | None
    release_date: str | None
    region: str


Lookup = Callable[[str, str], dict | None]


def lookup_app(region: str, app_id: str) -> dict | None:
    """
    Look an app up in one regional catalog.

    Returns the first result object, or None when the region has no answer.
    Network errors, bad status codes and malformed payloads all count as
    "not in this region"; there is no retry.
    """
    url = LOOKUP_URL.format(region=region)

    # Use module-level client if available (connection reuse), else one-off
    client = _http_client or httpx

    try:
        response = client.get(
            url,
            params={"id": app_id},
            headers={"User-Agent": USER_AGENT},
            timeout=DEFAULT_HTTP_TIMEOUT,
        )
    except httpx.HTTPError as e:
        log.detail(f"{region.upper()}: request for {app_id} failed: {e}")
        return None

    if response.status_code != 200:
        log.detail(f"{region.upper()}: lookup for {app_id} returned {response.status_code}")
        return None

    try:
        data = response.json()
    except json.JSONDecodeError as e:
        log.detail(f"{region.upper()}: invalid JSON for {app_id}: {e}")
        return None

    if not isinstance(data, dict) or not data.get("resultCount"):
        return None

    results = data.get("results")
    if not isinstance(results, list) or not results:
        return None

    app = results[0]
    if not isinstance(app, dict) or "trackName" not in app or "version" not in app:
        log.detail(f"{region.upper()}: result for {app_id} is missing required fields")
        return None
    return app


def resolve_app(app_id: str, regions: list[str], lookup: Lookup = lookup_app) -> LookupResult | None:
    """
    Probe regions in order and return the first one that knows the app.

    Later regions are never queried once one answers. Returns None if no
    region has the app.
    """
    for region in regions:
        app = lookup(region, app_id)
        if app:
            log.detail(f"{app_id} found in {region.upper()}")
            return LookupResult(
                app_id=app_id,
                name=str(app["trackName"]),
                version=str(app["version"]),
                release_notes=app.get("releaseNotes"),
                release_date=app.get("currentVersionReleaseDate"),
                region=region,
            )
    return None


# ---------------------------------------------------------------------------
# Change classification
# ---------------------------------------------------------------------------

class ChangeKind(enum.Enum):
    FIRST_SEEN = "first_seen"
    UPDATED = "updated"
    STALE_OR_REGRESSED = "stale_or_regressed"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class Notification:
    title: str
    subtitle: str
    body: str
    open_url: str | None = None


@dataclass(frozen=True)
class Classification:
    """
    Decision for one observation.

    `record` is the state entry built from the observation; it is stored
    when `accept` is true, together with sending `notification`.
    """

    kind: ChangeKind
    accept: bool
    record: dict
    message: str
    notification: Notification | None = None


def format_release_date(value, tz: str = DEFAULT_TIMEZONE) -> str:
    """Render an ISO 8601 timestamp in the given time zone."""
    if not value:
        return "unknown"
    try:
        moment = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return str(value)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    try:
        return moment.astimezone(ZoneInfo(tz)).strftime("%Y-%m-%d %H:%M:%S")
    except (OverflowError, ValueError):
        # Out of range once shifted into the zone
        return str(value)


def app_store_url(region: str, app_id: str) -> str:
    return APP_URL.format(region=region, app_id=app_id)


def describe_outcome(kind: ChangeKind, observed: LookupResult, stored_version: str | None) -> str:
    """One-line console summary for a classified observation."""
    prefix = f"[{observed.region.upper()}] {observed.name} (ID: {observed.app_id})"
    if kind is ChangeKind.FIRST_SEEN:
        return f"{prefix} first seen, monitoring from version {observed.version}."
    if kind is ChangeKind.UPDATED:
        return f"{prefix} updated {stored_version} → {observed.version}."
    if kind is ChangeKind.STALE_OR_REGRESSED:
        return (
            f"{prefix} current version ({observed.version}) is lower than "
            f"recorded version ({stored_version}), region may have changed."
        )
    return f"{prefix} already up to date ({observed.version})."


def build_notification(observed: LookupResult, stored_version: str | None, tz: str = DEFAULT_TIMEZONE) -> Notification:
    released = format_release_date(observed.release_date, tz)
    region = observed.region.upper()

    if stored_version:
        notes = observed.release_notes or NO_RELEASE_NOTES
        return Notification(
            title=f'"{observed.name}" has an update',
            subtitle=f"Region: {region}  Version: {stored_version} → {observed.version}",
            body=f"Released: {released}\nRelease notes:\n{notes}",
            open_url=app_store_url(observed.region, observed.app_id),
        )
    return Notification(
        title=f'"{observed.name}" added to monitoring',
        subtitle=f"Region: {region}  Current version: {observed.version}",
        body=f"Released: {released}\nMonitoring updates from this version on.",
        open_url=app_store_url(observed.region, observed.app_id),
    )


def classify(observed: LookupResult, stored: dict | None, tz: str = DEFAULT_TIMEZONE) -> Classification:
    """
    Classify an observation against the stored record.

    Only first-seen apps and strictly newer versions are accepted; a lower
    version (usually a different storefront answering) is ignored.
    """
    stored_version = (stored or {}).get("version") or None
    record = {"version": observed.version, "region": observed.region, "name": observed.name}

    if stored_version is None:
        kind = ChangeKind.FIRST_SEEN
    else:
        cmp = compare_versions(observed.version, stored_version)
        if cmp > 0:
            kind = ChangeKind.UPDATED
        elif cmp < 0:
            kind = ChangeKind.STALE_OR_REGRESSED
        else:
            kind = ChangeKind.UNCHANGED

    accept = kind in (ChangeKind.FIRST_SEEN, ChangeKind.UPDATED)
    return Classification(
        kind=kind,
        accept=accept,
        record=record,
        message=describe_outcome(kind, observed, stored_version),
        notification=build_notification(observed, stored_version, tz) if accept else None,
    )


# ---------------------------------------------------------------------------
# State management
# ---------------------------------------------------------------------------

class StateStore(Protocol):
    def load(self) -> str | None: ...

    def save(self, blob: str) -> None: ...


class FileStateStore:
    """Monitored app state kept as a single JSON file in a state directory."""

    def __init__(self, state_dir: Path):
        self.state_dir = state_dir

    @property
    def path(self) -> Path:
        return self.state_dir / STATE_FILENAME

    def load(self) -> str | None:
        if self.path.exists():
            log.detail(f"Loading state from {self.path}")
            return self.path.read_text(encoding="utf-8")
        log.detail(f"No existing state file at {self.path}")
        return None

    def save(self, blob: str) -> None:
        """Save state using atomic write."""
        self.state_dir.mkdir(parents=True, exist_ok=True)
        tmp_file = self.path.with_suffix(".json.tmp")

        # Write to temp file, then atomic rename
        try:
            tmp_file.write_text(blob, encoding="utf-8")
            tmp_file.replace(self.path)
        except Exception:
            # Clean up temp file on failure
            if tmp_file.exists():
                tmp_file.unlink()
            raise

        log.detail(f"State saved to {self.path}")


def is_blank_state(blob: str | None) -> bool:
    """True for missing, empty, whitespace-only or "{}" state."""
    return blob is None or blob.strip() in ("", "{}")


def parse_monitored_state(blob: str | None) -> dict[str, dict]:
    """
    Parse the stored {app_id: {version, region, name}} table.

    Corrupted state is discarded: every app is then treated as new.
    """
    if is_blank_state(blob):
        return {}
    try:
        data = json.loads(blob)
    except json.JSONDecodeError as e:
        log.warn(f"Corrupted monitored app state: {e}")
        log.warn("Starting fresh")
        return {}
    if not isinstance(data, dict):
        log.warn("Monitored app state is not a JSON object, starting fresh")
        return {}
    return {str(app_id): record for app_id, record in data.items() if isinstance(record, dict)}


def serialize_monitored_state(monitored: dict[str, dict]) -> str:
    return json.dumps(monitored, ensure_ascii=False, indent=2, sort_keys=True)


def prune_removed(app_ids: list[str], monitored: dict[str, dict]) -> list[str]:
    """Drop records for apps no longer tracked. Returns log lines."""
    removed = []
    for app_id in [k for k in monitored if k not in app_ids]:
        name = monitored[app_id].get("name") or f"ID: {app_id}"
        removed.append(f"[{name}] removed from monitoring.")
        del monitored[app_id]
    return removed


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------

class Notifier(Protocol):
    def post(self, notification: Notification) -> None: ...


def render_notification(notification: Notification) -> str:
    lines = [notification.title, notification.subtitle, notification.body, notification.open_url]
    return "\n".join(line for line in lines if line)


class ConsoleNotifier:
    """Write notifications to stderr."""

    def post(self, notification: Notification) -> None:
        log.notice(f"\n>> {render_notification(notification)}\n")


class WebhookNotifier:
    """
    POST notifications as JSON to a webhook.

    The payload carries a Discord/Slack-style "content" text plus the
    structured fields. Delivery failures are reported but never raised.
    """

    def __init__(self, url: str, client: httpx.Client | None = None):
        self.url = url.strip()
        self.client = client

    def post(self, notification: Notification) -> None:
        payload = {
            "content": render_notification(notification),
            "title": notification.title,
            "subtitle": notification.subtitle,
            "body": notification.body,
            "open_url": notification.open_url,
        }
        client = self.client or httpx
        try:
            response = client.post(self.url, json=payload, timeout=DEFAULT_HTTP_TIMEOUT)
        except httpx.HTTPError as e:
            log.warn(f"Notification delivery failed: {e}")
            return
        if not response.is_success:
            log.warn(f"Notification webhook returned {response.status_code}")


def unconfigured_notification() -> Notification:
    return Notification(
        title="App Store Watch not configured",
        subtitle="",
        body=(
            f"No App Store app ids configured. Set {ENV_PREFIX}APP_IDS or "
            f"app_ids in the [{CONFIG_SECTION}] section of the config file."
        ),
    )


# ---------------------------------------------------------------------------
# Monitor run
# ---------------------------------------------------------------------------

@dataclass
class AppOutcome:
    app_id: str
    observed: LookupResult | None
    classification: Classification | None


@dataclass
class RunSummary:
    status: str
    regions: list[str] = field(default_factory=list)
    custom_regions: bool = False
    removed: list[str] = field(default_factory=list)
    first_seen: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    no_update: list[str] = field(default_factory=list)
    not_found: list[str] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.first_seen or self.updated)


def check_app(
    app_id: str,
    stored: dict | None,
    regions: list[str],
    lookup: Lookup = lookup_app,
    tz: str = DEFAULT_TIMEZONE,
) -> AppOutcome:
    """Resolve and classify one app. Runs on a worker thread."""
    observed = resolve_app(app_id, regions, lookup)
    if observed is None:
        return AppOutcome(app_id, None, None)
    return AppOutcome(app_id, observed, classify(observed, stored, tz))


def run_monitor(
    app_ids_raw: str | None,
    regions_raw: str | None,
    store: StateStore,
    notifier: Notifier,
    lookup: Lookup = lookup_app,
    tz: str = DEFAULT_TIMEZONE,
    max_workers: int = MAX_WORKERS,
) -> RunSummary:
    """
    Run one monitoring pass.

    Loads tracked ids and saved state, drops apps no longer tracked, checks
    every app concurrently, then notifies and saves the whole table once.
    State is not saved if anything fails after the checks start.
    """
    stored_blob = store.load()

    if not app_ids_raw and is_blank_state(stored_blob):
        notification = unconfigured_notification()
        log.progress(notification.body)
        notifier.post(notification)
        return RunSummary(STATUS_UNCONFIGURED)

    app_ids = parse_app_ids(app_ids_raw)
    if not app_ids:
        if is_blank_state(stored_blob):
            log.progress("App id list is empty, nothing to do.")
            return RunSummary(STATUS_NOOP)
        log.progress("App id list is empty, clearing all monitored apps...")
        store.save("")
        log.progress("Monitored apps cleared.")
        return RunSummary(STATUS_CLEARED)

    monitored = parse_monitored_state(stored_blob)
    regions, custom = parse_regions(regions_raw)
    summary = RunSummary(STATUS_COMPLETED, regions=regions, custom_regions=custom)
    summary.removed = prune_removed(app_ids, monitored)

    log.progress(f"Region order: {' → '.join(regions).upper()} ({'custom' if custom else 'default'})")
    log.progress(f"Checking {len(app_ids)} app(s) for updates...")

    try:
        with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(app_ids)))) as executor:
            futures = [
                executor.submit(check_app, app_id, monitored.get(app_id), regions, lookup, tz)
                for app_id in app_ids
            ]
        # Executor exit waits for every task; a failed task raises here
        outcomes = [future.result() for future in futures]

        for outcome in outcomes:
            if outcome.observed is None:
                summary.not_found.append(
                    f"[{outcome.app_id}] not found in {', '.join(regions).upper()}; "
                    f"check the app id or add more regions."
                )
                continue

            result = outcome.classification
            if result.kind is ChangeKind.FIRST_SEEN:
                summary.first_seen.append(result.message)
            elif result.kind is ChangeKind.UPDATED:
                summary.updated.append(result.message)
            else:
                summary.no_update.append(result.message)

            if result.accept:
                monitored[outcome.app_id] = result.record
                notifier.post(result.notification)
            elif outcome.app_id not in monitored:
                # Never leave a tracked app without a record
                monitored[outcome.app_id] = result.record

        store.save(serialize_monitored_state(monitored))
    except Exception as e:
        log.error(f"Monitor run failed: {e}")
        summary.status = STATUS_FAILED
        return summary

    log.progress("App Store update check complete.")
    return summary


# ---------------------------------------------------------------------------
# Output formatting
# ---------------------------------------------------------------------------

REPORT_SECTIONS = [
    ("removed", "Removed"),
    ("first_seen", "First Seen"),
    ("updated", "Updated"),
    ("no_update", "No Update"),
    ("not_found", "Not Found"),
]


def format_markdown_report(summary: RunSummary) -> str:
    """
    Format the run summary as markdown.

    Returns empty string if there is nothing to report.
    """
    lines = ["# App Store Watch Report", ""]

    for key, label in REPORT_SECTIONS:
        entries = getattr(summary, key)
        if not entries:
            continue
        lines.append(f"## {label} ({len(entries)})")
        lines.append("")
        for entry in entries:
            lines.append(f"- {entry}")
        lines.append("")

    if len(lines) == 2:
        return ""

    lines.append(f"*Generated {datetime.now().strftime('%Y-%m-%d %H:%M:%S')} by App Store Watch*")
    return "\n".join(lines)


def format_json_report(summary: RunSummary) -> str:
    """
    Format the run summary as JSON.

    Returns empty string if there is nothing to report.
    """
    sections = {key: getattr(summary, key) for key, _ in REPORT_SECTIONS}
    if not any(sections.values()):
        return ""

    output = {
        "timestamp": datetime.now().isoformat(),
        "status": summary.status,
        "regions": summary.regions,
        "custom_regions": summary.custom_regions,
        **sections,
    }
    return json.dumps(output, indent=2, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Monitor App Store apps for new versions across regional storefronts.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Configuration (environment variable, or key in the [{CONFIG_SECTION}] section of the config file):
  {ENV_PREFIX}APP_IDS       app_ids       comma-separated app ids to monitor
  {ENV_PREFIX}REGIONS       regions       region lookup order (default: {','.join(DEFAULT_REGIONS)})
  {ENV_PREFIX}WEBHOOK_URL   webhook_url   send notifications to this webhook
  {ENV_PREFIX}TIMEZONE      timezone      time zone for release dates (default: {DEFAULT_TIMEZONE})

Examples:
  {ENV_PREFIX}APP_IDS=444934666,414478124 %(prog)s
  %(prog)s --format json > changes.json
  %(prog)s --quiet --state-dir /var/lib/appstore-watch
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_FILE,
        metavar="FILE",
        help=f"Config file. Default: {DEFAULT_CONFIG_FILE}",
    )

    parser.add_argument(
        "--state-dir",
        type=Path,
        default=DEFAULT_STATE_DIR,
        metavar="DIR",
        help=f"Directory for state files. Default: {DEFAULT_STATE_DIR}",
    )

    parser.add_argument(
        "--format",
        choices=["markdown", "json"],
        default="markdown",
        help="Output format. Default: markdown",
    )

    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress progress messages (only output report)",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show detailed progress information",
    )

    return parser.parse_args()


def main():
    """Main entry point."""
    global log

    args = parse_args()
    log = Logger(quiet=args.quiet, verbose=args.verbose)

    log.progress("App Store Watch")
    log.progress("=" * 40)

    config = load_config(args.config)
    app_ids_raw = get_setting("app_ids", config)
    regions_raw = get_setting("regions", config)
    webhook_url = get_setting("webhook_url", config)
    tz = resolve_timezone(get_setting("timezone", config))

    store = FileStateStore(args.state_dir)

    global _http_client
    with httpx.Client() as client:
        _http_client = client
        notifier = WebhookNotifier(webhook_url, client) if webhook_url else ConsoleNotifier()
        try:
            summary = run_monitor(app_ids_raw, regions_raw, store, notifier, tz=tz)

            # Output report to stdout (empty if nothing to report)
            if args.format == "json":
                report = format_json_report(summary)
            else:
                report = format_markdown_report(summary)

            if report:
                print(report)

            if summary.status == STATUS_FAILED:
                sys.exit(EXIT_ERROR)

            # Exit code: 0 = nothing new, 1 = new apps or updates
            sys.exit(EXIT_CHANGES if summary.has_changes else EXIT_SUCCESS)

        except KeyboardInterrupt:
            log.error("Interrupted by user")
            sys.exit(EXIT_ERROR)

        except Exception as e:
            log.error(f"Unexpected error: {e}")
            sys.exit(EXIT_ERROR)


if __name__ == "__main__":
    main()
