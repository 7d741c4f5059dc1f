# File: blockpuzzle/cli.py
import logging
import shutil
import subprocess
import sys
from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from blockpuzzle.agents import ALGORITHM_INFO, AgentKind, create_agent
from blockpuzzle.config import EnvConfig, PersistenceConfig, TrainConfig
from blockpuzzle.data import AgentStore
from blockpuzzle.logging_config import setup_logging
from blockpuzzle.training import (
    EvaluationResult,
    compare_algorithms,
    evaluate_agent,
    run_training,
)

logger = logging.getLogger(__name__)
console = Console()

app = typer.Typer(
    name="blockpuzzle",
    help="Block Puzzle RL CLI\nTrain, play and compare agents on a 9x9 block placement puzzle.",
    add_completion=False,
    rich_markup_mode="markdown",
    pretty_exceptions_show_locals=False,
)

# --- Shared options ---
LogLevelOption = Annotated[
    str,
    typer.Option(
        "--log-level",
        "-l",
        help="Console log level: DEBUG, INFO, WARNING, ERROR or CRITICAL.",
        case_sensitive=False,
    ),
]

SeedOption = Annotated[
    int,
    typer.Option("--seed", "-s", help="Seed for the tray generator and agent RNGs."),
]

AgentOption = Annotated[
    AgentKind,
    typer.Option("--agent", "-a", help="Agent algorithm to use.", case_sensitive=False),
]

EpisodesOption = Annotated[
    int,
    typer.Option("--episodes", "-n", help="Number of episodes to play.", min=1),
]

RunNameOption = Annotated[
    str | None,
    typer.Option("--run-name", help="Run name; defaults to a timestamped one."),
]

LoadKeyOption = Annotated[
    str | None,
    typer.Option("--load", help="Store key of a saved agent to load before playing."),
]

HostOption = Annotated[str, typer.Option(help="Interface the UI binds to.")]

PortOption = Annotated[int, typer.Option(help="Port the UI listens on.")]


# --- Helpers ---
def _launch(executable_name: str, args: list[str], label: str, url: str) -> int:
    """Runs an installed tool in the foreground. Returns its exit code."""
    executable = shutil.which(executable_name)
    if executable is None:
        console.print(
            f"[bold red]Error:[/bold red] '{executable_name}' is not on PATH; install {label} first."
        )
        return 1

    command = [executable, *args]
    console.print(
        Panel(
            f"Starting [bold cyan]{label}[/] at [link={url}]{url}[/]\n[dim]{' '.join(command)}[/]",
            title="External UI",
            border_style="blue",
            expand=False,
        )
    )
    try:
        return subprocess.run(command, check=False).returncode
    except KeyboardInterrupt:
        console.print(f"\n[yellow]{label} stopped.[/]")
        return 0
    except OSError as e:
        logger.error(f"Could not run {executable}: {e}")
        return 1


def _results_table(title: str, results: list[EvaluationResult]) -> Table:
    table = Table(title=title)
    table.add_column("Agent", style="cyan")
    table.add_column("Episodes", justify="right")
    table.add_column("Mean Score", justify="right")
    table.add_column("Best Score", justify="right", style="green")
    table.add_column("Mean Lines", justify="right")
    table.add_column("Mean Steps", justify="right")
    for result in results:
        table.add_row(
            result.kind,
            str(result.episodes),
            f"{result.mean_score:.1f}",
            str(result.best_score),
            f"{result.mean_lines:.2f}",
            f"{result.mean_steps:.1f}",
        )
    return table


# --- CLI Commands ---
@app.command()
def train(
    agent: AgentOption = AgentKind.VALUE,
    episodes: EpisodesOption = 1000,
    log_level: LogLevelOption = "INFO",
    seed: SeedOption = 42,
    run_name: RunNameOption = None,
    curriculum: Annotated[
        bool, typer.Option(help="Advance the shape tier as the agent improves.")
    ] = True,
):
    """
    Run the training driver (headless).

    Plays `--episodes` episodes with the chosen agent, logging metrics to MLflow
    and saving checkpoints under `.blockpuzzle_data/`.
    """
    setup_logging(log_level)

    train_config_override = TrainConfig(
        AGENT_KIND=agent.value,
        NUM_EPISODES=episodes,
        RANDOM_SEED=seed,
        USE_CURRICULUM=curriculum,
    )
    if run_name:
        train_config_override.RUN_NAME = run_name
    run_name = train_config_override.RUN_NAME
    persist_config_override = PersistenceConfig(RUN_NAME=run_name)

    console.print(
        Panel(
            f"Starting Training Run: '[bold cyan]{run_name}[/]'\n"
            f"Agent: {agent.value}, Episodes: {episodes}, Seed: {seed}, Log Level: {log_level.upper()}",
            title="[bold green]Training Setup[/]",
            border_style="green",
            expand=False,
        )
    )

    exit_code = run_training(
        log_level_str=log_level,
        train_config_override=train_config_override,
        persist_config_override=persist_config_override,
    )

    if exit_code == 0:
        console.print(
            Panel(
                f"Training run '[bold cyan]{run_name}[/]' completed successfully.",
                title="[bold green]Training Finished[/]",
                border_style="green",
            )
        )
    else:
        console.print(
            Panel(
                f"Training run '[bold cyan]{run_name}[/]' failed with exit code {exit_code}.",
                title="[bold red]Training Failed[/]",
                border_style="red",
            )
        )
    sys.exit(exit_code)


@app.command()
def play(
    agent: AgentOption = AgentKind.HEURISTIC,
    episodes: EpisodesOption = 5,
    seed: SeedOption = 42,
    load: LoadKeyOption = None,
    log_level: LogLevelOption = "WARNING",
):
    """Play greedy evaluation episodes and print a results table."""
    setup_logging(log_level)
    player = create_agent(agent, seed=seed)
    if load:
        if not player.learns:
            console.print(f"[yellow]{agent.value} agent has nothing to load; ignoring --load.[/]")
        elif not player.load(AgentStore(PersistenceConfig()), load):
            console.print(f"[bold red]Error:[/bold red] No usable checkpoint under key '{load}'.")
            raise typer.Exit(code=1)
    result = evaluate_agent(player, episodes, env_config=EnvConfig(), seed=seed)
    console.print(_results_table(f"{agent.value} evaluation", [result]))


@app.command()
def compare(
    episodes: EpisodesOption = 3,
    seed: SeedOption = 42,
    log_level: LogLevelOption = "WARNING",
):
    """Play every algorithm on identically seeded games and compare scores."""
    setup_logging(log_level)
    results = compare_algorithms(episodes=episodes, seed=seed)
    ranked = sorted(results.values(), key=lambda r: r.mean_score, reverse=True)
    console.print(_results_table("Algorithm comparison", ranked))


@app.command()
def algorithms():
    """List the available agent algorithms."""
    table = Table(title="Available algorithms")
    table.add_column("Key", style="cyan")
    table.add_column("Name", style="bold")
    table.add_column("Description")
    table.add_column("Strengths")
    table.add_column("Complexity", justify="center")
    for kind, info in ALGORITHM_INFO.items():
        table.add_row(
            kind.value,
            info["name"],
            info["description"],
            ", ".join(info["strengths"]),
            info["complexity"],
        )
    console.print(table)




@app.command()
def ml(
    host: HostOption = "127.0.0.1",
    port: PortOption = 5000,
):
    """
    Open the MLflow UI over the local tracking store.

    Needs the `mlflow` executable; runs are read from `.blockpuzzle_data/mlruns`.
    """
    setup_logging("INFO")
    persist_config = PersistenceConfig()
    store_path = persist_config.get_mlflow_abs_path()

    if store_path.is_dir() and any(store_path.iterdir()):
        console.print(f"Tracking store: [dim]{store_path}[/]")
    else:
        console.print(f"[yellow]No runs recorded yet in [dim]{store_path}[/][/]")

    exit_code = _launch(
        "mlflow",
        [
            "ui",
            "--backend-store-uri",
            persist_config.MLFLOW_TRACKING_URI,
            "--host",
            host,
            "--port",
            str(port),
        ],
        "MLflow UI",
        f"http://{host}:{port}",
    )
    if exit_code != 0:
        console.print(
            f"[yellow]MLflow UI exited with code {exit_code}; port {port} may be taken (see --port).[/]"
        )
    sys.exit(exit_code)


if __name__ == "__main__":
    app()
