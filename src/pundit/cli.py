"""CLI entry point for the pundit content assistant."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

console = Console()

TONE_CHOICES = ["authoritative", "provocative", "controversial", "ai-choice"]


@click.group()
@click.version_option(version="0.1.0")
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr")
def main(verbose: bool) -> None:
    """Personal-branding assistant: track industry news, draft social posts."""
    from pundit.config import configure_logging, get_settings

    configure_logging("DEBUG" if verbose else get_settings().log_level)


# ---------------------------------------------------------------------------
# account: register / login / logout / whoami
# ---------------------------------------------------------------------------


@main.command()
@click.option("--name", "-n", prompt=True, help="Display name")
@click.option("--email", "-e", prompt=True, help="Email address")
@click.password_option()
def register(name: str, email: str, password: str) -> None:
    """Create an account and sign in."""
    from pundit.identity.accounts import AuthError

    accounts = _accounts()
    try:
        user = accounts.register(name, email, password)
    except AuthError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise SystemExit(1)
    console.print(
        f"[green]Welcome, {escape(user.name)}![/green] Run 'pundit onboard' to set up tracking."
    )


@main.command()
@click.option("--email", "-e", prompt=True, help="Email address")
@click.option("--password", prompt=True, hide_input=True)
def login(email: str, password: str) -> None:
    """Sign in with email and password."""
    from pundit.identity.accounts import AuthError

    try:
        user = _accounts().login(email, password)
    except AuthError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise SystemExit(1)
    console.print(f"[green]Signed in as {escape(user.name)}[/green] ({escape(user.email)})")


@main.command()
def logout() -> None:
    """Sign out."""
    _accounts().logout()
    console.print("Signed out.")


@main.command()
def whoami() -> None:
    """Show the signed-in user."""
    user = _accounts().current_user()
    if user is None:
        console.print("[dim]Not signed in.[/dim]")
        return
    console.print(f"{escape(user.name)} <{escape(user.email)}>")


# ---------------------------------------------------------------------------
# onboard: suggest sources, keywords and companies for a profession
# ---------------------------------------------------------------------------


@main.command()
@click.option("--profession", "-p", help="Your profession or area of interest")
@click.option("--skip", is_flag=True, help="Keep the default setup")
def onboard(profession: str | None, skip: bool) -> None:
    """Bootstrap tracked sources and terms from your profession."""
    from pundit.content.generator import GenerationError
    from pundit.content.onboarding import ProfessionAnalyzer
    from pundit.llm.client import ClaudeClient

    with _workspace(onboarding=True) as (settings, workspace):
        if skip:
            workspace.skip_onboarding()
            console.print("[dim]Keeping the default sources and keywords.[/dim]")
            return

        _check_api_key(settings)
        if not profession:
            profession = Prompt.ask("What is your profession or area of interest?")

        analyzer = ProfessionAnalyzer(ClaudeClient(settings))
        with console.status("[bold green]Analyzing your niche..."):
            try:
                data = analyzer.analyze(profession)
            except GenerationError as e:
                console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
                raise SystemExit(1)

        console.print(Panel(escape(data.analysis or "(no analysis)"), title=escape(profession)))
        table = Table(title="Suggested sources")
        table.add_column("Name", width=30)
        table.add_column("URL", width=50)
        for s in data.suggested_sources:
            table.add_row(escape(s.name), escape(s.url))
        console.print(table)
        console.print(f"[bold]Keywords:[/bold] {escape(', '.join(data.suggested_keywords))}")
        console.print(f"[bold]Companies:[/bold] {escape(', '.join(data.suggested_companies))}")

        if Prompt.ask("\nUse this setup?", choices=["y", "n"], default="y") == "y":
            workspace.complete_onboarding(data)
            console.print("[green]Setup saved.[/green] Run 'pundit scan' to find articles.")
        else:
            workspace.skip_onboarding()
            console.print("[dim]Keeping the default sources and keywords.[/dim]")


# ---------------------------------------------------------------------------
# sources / keywords / companies: tracking configuration
# ---------------------------------------------------------------------------


@main.group()
def sources() -> None:
    """Manage the publications that are scanned."""


@sources.command("list")
def sources_list() -> None:
    """List feed sources."""
    with _workspace() as (_, workspace):
        table = Table(title="Sources")
        table.add_column("ID", width=8)
        table.add_column("Name", width=28)
        table.add_column("URL", width=44)
        table.add_column("Active", width=6, justify="center")
        for s in workspace.tracking.sources:
            active = "[green]yes[/green]" if s.active else "[dim]no[/dim]"
            table.add_row(s.id[:8], escape(s.name), escape(s.url), active)
        console.print(table)


@sources.command("add")
@click.argument("url")
@click.option("--name", "-n", help="Display name (defaults to the host)")
def sources_add(url: str, name: str | None) -> None:
    """Add a source by URL."""
    from pundit.tracking.store import InvalidSourceURL

    with _workspace() as (_, workspace):
        try:
            source = workspace.tracking.add_source(url, name)
        except InvalidSourceURL:
            console.print("[bold red]Error:[/bold red] Please enter a valid URL.")
            raise SystemExit(1)
        console.print(f"[green]Added[/green] {escape(source.name)} ({escape(source.url)})")


@sources.command("toggle")
@click.argument("source_id")
def sources_toggle(source_id: str) -> None:
    """Pause or resume a source."""
    with _workspace() as (_, workspace):
        source = workspace.tracking.toggle_source(_resolve_source(workspace, source_id))
        state = "active" if source.active else "paused"
        console.print(f"{escape(source.name)} is now {state}.")


@sources.command("remove")
@click.argument("source_id")
def sources_remove(source_id: str) -> None:
    """Remove a source."""
    with _workspace() as (_, workspace):
        workspace.tracking.remove_source(_resolve_source(workspace, source_id))
        console.print("Source removed.")


def _term_group(kind: str, plural: str) -> click.Group:
    """Build the list/add/remove group for keywords or companies."""

    @click.group(name=plural, help=f"Manage tracked {plural}.")
    def group() -> None:
        pass

    @group.command("list", help=f"List tracked {plural}.")
    def list_terms() -> None:
        with _workspace() as (_, workspace):
            terms = getattr(workspace.tracking, plural).to_list()
            if not terms:
                console.print(f"[dim]No {plural} tracked.[/dim]")
            for term in terms:
                console.print(f"  - {escape(term)}")

    @group.command("add", help=f"Track one or more {plural}.")
    @click.argument("terms", nargs=-1, required=True)
    def add_terms(terms: tuple[str, ...]) -> None:
        with _workspace() as (_, workspace):
            add = getattr(workspace.tracking, f"add_{kind}")
            for term in terms:
                if add(term):
                    console.print(f"[green]Tracking[/green] {escape(term.strip())}")
                else:
                    console.print(f"[dim]Already tracked or blank: {escape(repr(term))}[/dim]")

    @group.command("remove", help=f"Stop tracking one or more {plural}.")
    @click.argument("terms", nargs=-1, required=True)
    def remove_terms(terms: tuple[str, ...]) -> None:
        with _workspace() as (_, workspace):
            remove = getattr(workspace.tracking, f"remove_{kind}")
            for term in terms:
                if remove(term):
                    console.print(f"Removed {escape(term)}")
                else:
                    console.print(f"[yellow]Not tracked: {escape(term)}[/yellow]")

    return group


main.add_command(_term_group("keyword", "keywords"))
main.add_command(_term_group("company", "companies"))


# ---------------------------------------------------------------------------
# scan / inbox / archived / show: article lifecycle
# ---------------------------------------------------------------------------


@main.command()
def scan() -> None:
    """Scan active sources for articles mentioning tracked terms."""
    with _workspace() as (settings, workspace):
        if settings.discovery_mode == "search":
            _check_api_key(settings)
        if not workspace.tracking.active_sources:
            console.print("[yellow]No active sources to scan.[/yellow]")
            return

        with console.status("[bold green]Scanning sources..."):
            added = workspace.scan()

        if not added:
            console.print("[dim]No new articles.[/dim]")
            return
        console.print(f"[green]{len(added)} new articles[/green]\n")
        _print_articles("New in Inbox", added)


@main.command()
def inbox() -> None:
    """List Inbox articles, newest first."""
    with _workspace() as (_, workspace):
        articles = workspace.controller.inbox
        if not articles:
            console.print("[dim]Inbox is empty. Run 'pundit scan'.[/dim]")
            return
        _print_articles(f"Inbox ({len(articles)})", articles)


@main.command()
def archived() -> None:
    """List archived articles."""
    with _workspace() as (_, workspace):
        articles = workspace.controller.archive_items
        if not articles:
            console.print("[dim]Archive is empty.[/dim]")
            return
        _print_articles(f"Archive ({len(articles)})", articles)


@main.command()
@click.argument("article_id")
def show(article_id: str) -> None:
    """Show one article and its latest draft."""
    with _workspace() as (_, workspace):
        article = workspace.controller.get(_resolve_article(workspace, article_id))
        console.print(Panel(
            f"[bold]{escape(article.title)}[/bold]\n\n{escape(article.summary)}\n\n"
            f"[dim]{escape(article.link)}[/dim]",
            subtitle=f"{escape(article.source_name)} | {article.processing_status.value}",
        ))
        if article.matched_keywords:
            console.print(f"[bold]Matched:[/bold] {escape(', '.join(article.matched_keywords))}")
        if article.result is not None:
            _print_result(article.result, article.id)


# ---------------------------------------------------------------------------
# draft: generate or regenerate posts in a tone
# ---------------------------------------------------------------------------


@main.command()
@click.argument("article_id")
@click.option(
    "--tone",
    "-t",
    type=click.Choice(TONE_CHOICES),
    help="Editorial tone (defaults to the last tone used for this article)",
)
def draft(article_id: str, tone: str | None) -> None:
    """Draft LinkedIn and X posts for an article."""
    from pundit.content.models import Tone
    from pundit.inbox.lifecycle import GenerationInProgress
    from pundit.inbox.models import ProcessingStatus

    with _workspace() as (settings, workspace):
        _check_api_key(settings)
        controller = workspace.controller
        full_id = _resolve_article(workspace, article_id)
        chosen = Tone.parse(tone) if tone else controller.preferred_tone(full_id)

        try:
            with console.status(f"[bold green]Drafting ({chosen.value})..."):
                article = controller.generate(full_id, chosen)
        except GenerationInProgress:
            console.print("[yellow]A draft for this article is already in progress.[/yellow]")
            raise SystemExit(1)

        if article.processing_status == ProcessingStatus.ERROR:
            console.print(
                "[bold red]Generation failed.[/bold red] "
                f"Run 'pundit draft {full_id[:8]}' to try again."
            )
            raise SystemExit(1)

        console.print(Panel(
            f"[bold]{escape(article.title)}", subtitle=escape(article.source_name)
        ))
        _print_result(article.result, article.id)
        console.print(f"\n[dim]Tokens: {workspace.usage_summary}[/dim]")


# ---------------------------------------------------------------------------
# archive / delete / clear: collection management
# ---------------------------------------------------------------------------


@main.command()
@click.argument("article_ids", nargs=-1)
@click.option("--all", "all_", is_flag=True, help="Archive the whole Inbox")
def archive(article_ids: tuple[str, ...], all_: bool) -> None:
    """Move Inbox articles to the Archive."""
    from pundit.inbox.models import ArticleView

    with _workspace() as (_, workspace):
        controller = workspace.controller
        controller.set_view(ArticleView.INBOX)
        if all_:
            controller.selection.select_all(a.id for a in controller.inbox)
        else:
            for article_id in article_ids:
                controller.selection.add(
                    _resolve_article(workspace, article_id, ArticleView.INBOX)
                )

        if len(controller.selection) == 0:
            console.print("[yellow]Nothing selected.[/yellow]")
            return
        if len(controller.selection) == 1:
            moved = [controller.archive(controller.selection.ids[0])]
        else:
            moved = controller.bulk_archive(controller.selection.ids)
        console.print(f"[green]Archived {len(moved)} article(s).[/green]")


@main.command()
@click.argument("article_ids", nargs=-1)
@click.option("--all", "all_", is_flag=True, help="Delete every article in the collection")
@click.option(
    "--from",
    "scope",
    type=click.Choice(["inbox", "archive"]),
    default="inbox",
    help="Collection for --all",
)
def delete(article_ids: tuple[str, ...], all_: bool, scope: str) -> None:
    """Delete articles from the Inbox or the Archive."""
    from pundit.inbox.models import ArticleView

    with _workspace() as (_, workspace):
        controller = workspace.controller
        view = ArticleView.INBOX if scope == "inbox" else ArticleView.ARCHIVE
        controller.set_view(view)
        if all_:
            controller.selection.select_all(a.id for a in controller.collection(view))
        else:
            for article_id in article_ids:
                controller.selection.add(_resolve_article(workspace, article_id))

        if len(controller.selection) == 0:
            console.print("[yellow]Nothing selected.[/yellow]")
            return
        if len(controller.selection) == 1:
            removed = int(controller.delete(controller.selection.ids[0]))
        else:
            removed = controller.bulk_delete(controller.selection.ids)
        console.print(f"Deleted {removed} article(s).")


@main.command()
@click.argument("scope", type=click.Choice(["inbox", "archive"]))
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
def clear(scope: str, yes: bool) -> None:
    """Empty the Inbox or the Archive."""
    from pundit.inbox.models import ArticleView

    if not yes and not click.confirm(f"Delete every article in the {scope}?"):
        console.print("[dim]Cancelled.[/dim]")
        return
    with _workspace() as (_, workspace):
        view = ArticleView.INBOX if scope == "inbox" else ArticleView.ARCHIVE
        removed = workspace.controller.clear_all(view)
        console.print(f"Cleared {removed} article(s) from the {scope}.")


# ---------------------------------------------------------------------------
# review: instant review of any URL
# ---------------------------------------------------------------------------


@main.command()
@click.argument("url")
@click.option("--tone", "-t", type=click.Choice(TONE_CHOICES), default="ai-choice")
@click.option("--file", "file_", is_flag=True, help="Save the result to the Archive")
def review(url: str, tone: str, file_: bool) -> None:
    """Verify an article URL and draft posts from its live content."""
    from pundit.content.generator import GenerationError
    from pundit.content.models import Tone
    from pundit.inbox.lifecycle import DuplicateArticle
    from pundit.tracking.store import InvalidSourceURL

    with _workspace() as (settings, workspace):
        _check_api_key(settings)
        try:
            with console.status("[bold green]Reading the article..."):
                result = workspace.review(url, Tone.parse(tone))
        except InvalidSourceURL:
            console.print("[bold red]Error:[/bold red] Please enter a valid URL.")
            raise SystemExit(1)
        except GenerationError as e:
            console.print(
                f"[bold red]Error:[/bold red] {escape(str(e))}. Check the link and try again."
            )
            raise SystemExit(1)

        _print_result(result, None)
        console.print(f"[dim]Tokens: {workspace.usage_summary}[/dim]")

        if result.skipped:
            return
        if file_ or Prompt.ask("\nSave to Archive?", choices=["y", "n"], default="n") == "y":
            try:
                article = workspace.file_review(result, url)
            except DuplicateArticle:
                console.print("[yellow]That article is already in your Inbox or Archive.[/yellow]")
                return
            console.print(f"[green]Archived as {article.id[:8]}[/green]")


# ---------------------------------------------------------------------------
# share: intent links for LinkedIn and X
# ---------------------------------------------------------------------------


@main.command()
@click.argument("article_id")
def share(article_id: str) -> None:
    """Print share links pre-filled with an article's drafts."""
    from pundit.publishing.linkedin import (
        linkedin_intent_url,
        linkedin_post_text,
        linkedin_share_url,
        short_form_text,
        x_intent_url,
    )

    with _workspace() as (_, workspace):
        article = workspace.controller.get(_resolve_article(workspace, article_id))
        if article.result is None or article.result.skipped:
            console.print(
                "[yellow]No draft to share.[/yellow] "
                f"Run 'pundit draft {article.id[:8]}' first."
            )
            raise SystemExit(1)

        console.print("[bold]LinkedIn[/bold]")
        console.print(linkedin_intent_url(linkedin_post_text(article.result)), soft_wrap=True)
        console.print("[bold]LinkedIn (link only)[/bold]")
        console.print(linkedin_share_url(article.link), soft_wrap=True)
        console.print("[bold]X[/bold]")
        console.print(x_intent_url(short_form_text(article.result)), soft_wrap=True)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _accounts():
    from pundit.config import get_settings
    from pundit.identity.accounts import AccountService

    settings = get_settings()
    return AccountService(settings.db_path, settings.session_path)


@contextmanager
def _workspace(onboarding: bool = False) -> Iterator[tuple]:
    """Open the signed-in user's workspace and save it on the way out.

    Nothing is saved before onboarding, so every command except ``onboard``
    refuses to run until the user has set up tracking or skipped it.
    """
    from pundit.config import get_settings
    from pundit.content.generator import PostGenerator
    from pundit.discovery.feeds import FeedScanner
    from pundit.discovery.search import SearchDiscovery
    from pundit.llm.client import ClaudeClient
    from pundit.storage.documents import DocumentStore
    from pundit.workspace import Workspace

    settings = get_settings()
    user = _accounts().current_user()
    if user is None:
        console.print("[bold red]Error:[/bold red] Not signed in. Run 'pundit login' first.")
        raise SystemExit(1)

    client = ClaudeClient(settings)
    scanner: FeedScanner | None = None
    if settings.discovery_mode == "search":
        discovery = SearchDiscovery(client, max_total=settings.max_discovered_articles)
    else:
        scanner = FeedScanner(
            timeout=settings.http_timeout,
            max_per_feed=settings.max_articles_per_feed,
            max_total=settings.max_discovered_articles,
        )
        discovery = scanner

    workspace = Workspace.open(
        user,
        generator=PostGenerator(client),
        discovery=discovery,
        documents=DocumentStore(settings.db_path),
        inbox_cap=settings.inbox_cap,
        autosave_delay=settings.autosave_delay_seconds,
    )
    try:
        if not onboarding and not workspace.onboarded:
            console.print(
                "[yellow]Finish setup first.[/yellow] Run 'pundit onboard' "
                "(or 'pundit onboard --skip' to keep the defaults)."
            )
            raise SystemExit(1)
        yield settings, workspace
    finally:
        workspace.close()
        if scanner is not None:
            scanner.close()


def _check_api_key(settings: object) -> None:
    """Exit with a helpful message if the API key is not set."""
    if not getattr(settings, "anthropic_api_key", ""):
        console.print(
            "[bold red]Error:[/bold red] ANTHROPIC_API_KEY not set.\n"
            "Add it to .env or export it in your shell."
        )
        raise SystemExit(1)


def _resolve_article(workspace: object, prefix: str, view: object = None) -> str:
    """Expand an id prefix to a full article id, or exit."""
    controller = workspace.controller
    if view is None:
        pool = controller.inbox + controller.archive_items
    else:
        pool = controller.collection(view)
    matches = [a.id for a in pool if a.id.startswith(prefix)]
    if len(matches) != 1:
        reason = "No article" if not matches else "Ambiguous id"
        console.print(f"[bold red]Error:[/bold red] {reason}: {prefix}")
        raise SystemExit(1)
    return matches[0]


def _resolve_source(workspace: object, prefix: str) -> str:
    matches = [s.id for s in workspace.tracking.sources if s.id.startswith(prefix)]
    if len(matches) != 1:
        reason = "No source" if not matches else "Ambiguous id"
        console.print(f"[bold red]Error:[/bold red] {reason}: {prefix}")
        raise SystemExit(1)
    return matches[0]


_STATUS_STYLE = {
    "IDLE": "dim",
    "PROCESSING": "cyan",
    "COMPLETED": "green",
    "ERROR": "red",
}


def _print_articles(title: str, articles) -> None:
    table = Table(title=title)
    table.add_column("ID", width=8)
    table.add_column("Title", width=50)
    table.add_column("Source", width=18)
    table.add_column("Matched", width=24)
    table.add_column("Status", width=10)
    for a in articles:
        status = a.processing_status.value
        table.add_row(
            a.id[:8],
            escape(a.title[:50]),
            escape(a.source_name[:18]),
            escape(", ".join(a.matched_keywords)[:24]),
            f"[{_STATUS_STYLE[status]}]{status}[/]",
        )
    console.print(table)


def _print_result(result, article_id: str | None) -> None:
    """Render a generation result; a SKIP has no drafts, only a regenerate hint."""
    meta = result.meta
    tone = meta.applied_tone.value if meta.applied_tone else "-"
    if result.skipped:
        hint = f" Try 'pundit draft {article_id[:8]} --tone ...'." if article_id else ""
        console.print(Panel(
            "The article could not be verified or is off-topic, so no posts were drafted."
            + hint,
            title="Skipped",
            subtitle=f"tone: {tone}",
            border_style="yellow",
        ))
        return

    linkedin = result.posts.linkedin
    short_form = result.posts.short_form
    console.print(Panel(
        f"[bold]{escape(linkedin.hook)}[/bold]\n\n{escape(linkedin.body)}\n\n"
        f"[italic]{escape(linkedin.kicker)}[/italic]\n\n"
        f"[blue]{escape(' '.join(linkedin.hashtags))}[/blue]",
        title="LinkedIn",
        border_style="blue",
    ))
    console.print(Panel(
        f"{escape(short_form.content)}\n\n[blue]{escape(' '.join(short_form.hashtags))}[/blue]",
        title="X",
    ))
    console.print(
        f"[dim]Topic: {escape(meta.source_topic)} | Sentiment: {meta.sentiment} | "
        f"Virality: {meta.virality_score:g}/10 | Tone: {tone}[/dim]"
    )
