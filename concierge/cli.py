"""Concierge command-line demo.

Examples:
  python -m concierge "Bali için paket önerir misiniz?"
  python -m concierge "I want to book a reservation" --phase booking
  python -m concierge "Santorini balayı" --emotion excitement --repeat 2
  python -m concierge --stats
"""

import argparse
import asyncio
import logging
import uuid

from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .agents import ConversationPhase, ConversationState, Emotion, EmotionalState
from .config import Config
from .service import Answer, ConciergeService, create_service

console = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="concierge",
        description="Answer a travel query with the response cache and agent team",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("query", nargs="?", help="Query to answer")
    parser.add_argument("--language", help="Answer language (detected if omitted)")
    parser.add_argument("--phase", choices=[p.value for p in ConversationPhase], help="Conversation phase")
    parser.add_argument("--messages", type=int, default=0, help="Messages so far in the conversation")
    parser.add_argument("--emotion", choices=[e.value for e in Emotion], help="User emotion")
    parser.add_argument("--session", default=None, help="Session id (random if omitted)")
    parser.add_argument("--repeat", type=int, default=1, help="Ask the same query N times (shows cache hits)")
    parser.add_argument("--stats", action="store_true", help="Show index, cache and agent statistics")
    parser.add_argument("--agents", action="store_true", help="Show agent status")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def render_answer(answer: Answer) -> None:
    color = {"cache": "green", "generation": "cyan", "agents": "magenta"}.get(answer.source, "red")
    subtitle = f"source: {answer.source} | language: {answer.language}"
    if answer.similarity is not None:
        subtitle += f" | similarity: {answer.similarity:.3f}"
    console.print(Panel(answer.response, title="Answer", subtitle=subtitle, border_style=color))

    if answer.coordination is None:
        return

    dist = answer.coordination.distribution
    insights = answer.coordination.system_insights
    console.print(
        f"[bold]Primary:[/bold] {dist.primary_agent}  "
        f"[bold]Assisting:[/bold] {', '.join(dist.assisting_agents) or '-'}  "
        f"[bold]Complexity:[/bold] {dist.complexity.value}  "
        f"[bold]Strategy:[/bold] {dist.strategy.value}  "
        f"[bold]Quality:[/bold] {insights['quality_score']:.2f}"
    )

    table = Table(title="Agent Contributions")
    table.add_column("Agent", style="cyan")
    table.add_column("Confidence", justify="right")
    table.add_column("Review", justify="center")
    table.add_column("Content", max_width=60)
    for response in answer.coordination.agent_contributions:
        table.add_row(
            response.agent_id,
            f"{response.confidence:.2f}",
            "[yellow]![/yellow]" if response.requires_human_review else "",
            response.content.strip() or "[dim](none)[/dim]",
        )
    console.print(table)


def render_stats(service: ConciergeService) -> None:
    stats = service.stats()
    table = Table(title="Concierge Statistics")
    table.add_column("Component", style="cyan")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    for component, values in stats.items():
        for metric, value in values.items():
            if isinstance(value, float):
                value = f"{value:.3f}"
            table.add_row(component, metric, str(value))
    console.print(table)


def render_agents(service: ConciergeService) -> None:
    table = Table(title="Agents")
    table.add_column("Agent", style="cyan")
    table.add_column("Active", justify="center")
    table.add_column("Confidence", justify="right")
    table.add_column("Expertise")
    for agent_id, status in service.agent_status().items():
        table.add_row(
            agent_id,
            "[green]✓[/green]" if status["is_active"] else "[red]✗[/red]",
            f"{status['confidence']:.2f}",
            ", ".join(status["expertise"]),
        )
    console.print(table)


async def run(args: argparse.Namespace) -> int:
    service = await create_service(Config())
    try:
        if args.agents:
            render_agents(service)
        if args.query:
            state = None
            if args.phase or args.messages:
                state = ConversationState(
                    phase=ConversationPhase(args.phase) if args.phase else None,
                    message_count=args.messages,
                )
            emotion = EmotionalState(primary=Emotion(args.emotion)) if args.emotion else None
            session_id = args.session or uuid.uuid4().hex[:12]

            for _ in range(max(1, args.repeat)):
                answer = await service.answer(
                    args.query,
                    session_id,
                    language=args.language,
                    conversation_state=state,
                    emotional_state=emotion,
                )
                render_answer(answer)
        if args.stats:
            await service.drain()
            render_stats(service)
    finally:
        await service.close()
    return 0


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)
    if not (args.query or args.stats or args.agents):
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return asyncio.run(run(args))
