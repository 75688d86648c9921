"""
Main CLI entry point for the Hanzi prompt optimizer.
"""

import asyncio
import base64
import logging
import mimetypes
import sys
from datetime import datetime
from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console

from prompt_cli import __version__
from prompt_cli.renderer import OutputRenderer
from prompt_optimizer import (
    ClarificationResult,
    CompletionGateway,
    ImagePayload,
    IndustryGlossary,
    OptimizationPipeline,
    OptimizationSession,
    OptimizationSettings,
    OptimizerError,
    ReasoningStrategy,
    TargetModel,
)
from prompt_optimizer.config import OptimizerConfig
from prompt_optimizer.settings import INDUSTRY_BLOCKS, IdeaInputType

console = Console()
logger = logging.getLogger(__name__)


def _configure_logging(level: int) -> None:
    """Send logs to a timestamped file under ./logs and to stderr."""
    logs_dir = Path("logs")
    logs_dir.mkdir(exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = logs_dir / f"prompt_optimizer_{timestamp}.log"

    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(level)
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter("%(name)s - %(levelname)s - %(message)s"))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    logging.info(f"Logging initialized. Log file: {log_file}")


def create_gateway(config: OptimizerConfig) -> CompletionGateway:
    """Build the completion gateway for this process."""
    return config.create_gateway()


def create_pipeline() -> OptimizationPipeline:
    config = OptimizerConfig()
    return OptimizationPipeline(
        create_gateway(config),
        tree_of_thought_branches=config.TREE_OF_THOUGHT_BRANCHES,
    )


def build_settings(
    settings_file: Path | None = None,
    industry: str | None = None,
    density: int | None = None,
    target_model: str | None = None,
    reasoning: str | None = None,
    no_xml: bool = False,
    classical: bool = False,
    image_input: bool = False,
) -> OptimizationSettings:
    """
    Load settings from a JSON file (or the defaults) and apply option overrides.

    Args:
        settings_file: JSON file in the API's camelCase settings format
        industry: Industry profile override
        density: Hanzi density override
        target_model: Target model override
        reasoning: Reasoning strategy override
        no_xml: Disable structural tagging
        classical: Enable classical Chinese mode
        image_input: Switch the art profile to image input

    Returns:
        Validated OptimizationSettings

    Raises:
        click.BadParameter: If the file or the combined settings are invalid
    """
    try:
        if settings_file is not None:
            base = OptimizationSettings.model_validate_json(settings_file.read_text(encoding="utf-8"))
        else:
            base = OptimizationSettings.defaults()
    except ValidationError as e:
        raise click.BadParameter(str(e), param_hint="--settings") from e

    data = base.model_dump()
    advanced = data["advanced"]

    if industry is not None:
        data["industry_glossary"] = IndustryGlossary(industry)
    if density is not None:
        data["hanzi_density"] = density
    if classical:
        data["classical_mode"] = True
    if target_model is not None:
        advanced["target_model"] = TargetModel(target_model)
    if reasoning is not None:
        advanced["reasoning_strategy"] = ReasoningStrategy(reasoning)
    if no_xml:
        advanced["use_xml"] = False

    # A settings file may omit the block of an industry chosen on the command line
    block = INDUSTRY_BLOCKS.get(IndustryGlossary(data["industry_glossary"]))
    if block is not None and data.get(block) is None:
        data[block] = {}
    if image_input and data["industry_glossary"] == IndustryGlossary.ART:
        data["art"]["idea_input_type"] = IdeaInputType.IMAGE

    try:
        return OptimizationSettings.model_validate(data)
    except ValidationError as e:
        raise click.BadParameter(str(e)) from e


def load_image(path: Path) -> ImagePayload:
    """Read an image file into an inline payload."""
    mime_type, _ = mimetypes.guess_type(path.name)
    data = base64.b64encode(path.read_bytes()).decode("ascii")
    return ImagePayload(data=data, mime_type=mime_type or "image/jpeg")


async def run_optimization(
    session: OptimizationSession,
    renderer: OutputRenderer,
    prompt: str,
    settings: OptimizationSettings,
    negative_prompt: str | None = None,
    image: ImagePayload | None = None,
):
    """
    Optimize ``prompt``, asking the user each clarification question.

    An empty answer cancels the pending clarification.

    Returns:
        OptimizationSuccess, or None if the user cancelled
    """
    result = await session.optimize(prompt, settings, negative_prompt=negative_prompt, image=image)

    while isinstance(result, ClarificationResult):
        renderer.clarification(result.question)
        answer = click.prompt(
            "Your answer (leave empty to cancel)", default="", show_default=False
        )
        if not answer.strip():
            session.cancel_clarification()
            renderer.warning("Clarification cancelled.")
            return None
        result = await session.clarify(answer)

    renderer.optimization(result)
    return result


async def stream_answer(pipeline: OptimizationPipeline, renderer: OutputRenderer, prompt: str) -> None:
    renderer.response_header()
    async for chunk in pipeline.stream_response(prompt):
        renderer.stream_chunk(chunk)
    renderer.stream_end()


def _fail(renderer: OutputRenderer, error: Exception) -> None:
    message = error.user_message if isinstance(error, OptimizerError) else str(error)
    renderer.error(message)
    if "--debug" in sys.argv or "-d" in sys.argv:
        raise error
    sys.exit(1)


@click.group(invoke_without_command=True)
@click.option("--version", is_flag=True, help="Show version and exit")
@click.option("--debug", "-d", is_flag=True, help="Enable debug logging")
@click.option("--info", "-i", is_flag=True, help="Enable info logging")
@click.pass_context
def cli(ctx: click.Context, version: bool, debug: bool, info: bool) -> None:
    """
    Hanzi Prompt Optimizer - rewrite prompts to spend fewer tokens.

    Use the optimize command to rewrite a prompt and respond to forward one
    to the response model.
    """
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug

    if debug or info:
        _configure_logging(logging.DEBUG if debug else logging.INFO)

    if version:
        console.print(f"[bold cyan]Hanzi Prompt Optimizer[/bold cyan] version [green]{__version__}[/green]")
        return

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.argument("prompt", default="")
@click.option(
    "--settings",
    "settings_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON settings file (camelCase, as sent to the API)",
)
@click.option("--industry", type=click.Choice([g.value for g in IndustryGlossary]), help="Industry profile")
@click.option("--density", type=click.IntRange(0, 100), help="Hanzi density (0-100)")
@click.option("--target-model", type=click.Choice([m.value for m in TargetModel]), help="Target model family")
@click.option("--reasoning", type=click.Choice([s.value for s in ReasoningStrategy]), help="Reasoning strategy")
@click.option("--no-xml", is_flag=True, help="Disable structural XML tagging")
@click.option("--classical", is_flag=True, help="Use classical Chinese phrasing")
@click.option("--negative", help="Negative prompt: terms the result must avoid")
@click.option(
    "--image",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Image to describe (art profile)",
)
@click.option("--respond", is_flag=True, help="Send the optimized prompt to the response model")
def optimize(
    prompt: str,
    settings_file: Path | None,
    industry: str | None,
    density: int | None,
    target_model: str | None,
    reasoning: str | None,
    no_xml: bool,
    classical: bool,
    negative: str | None,
    image: Path | None,
    respond: bool,
) -> None:
    """Optimize PROMPT and print the result with its token savings."""
    renderer = OutputRenderer(console)
    settings = build_settings(
        settings_file,
        industry=industry,
        density=density,
        target_model=target_model,
        reasoning=reasoning,
        no_xml=no_xml,
        classical=classical,
        image_input=image is not None,
    )
    image_payload = load_image(image) if image is not None else None

    async def _run() -> None:
        pipeline = create_pipeline()
        session = OptimizationSession(pipeline)
        result = await run_optimization(
            session, renderer, prompt, settings,
            negative_prompt=negative, image=image_payload,
        )
        if result is not None and respond:
            await stream_answer(pipeline, renderer, result.optimized_prompt)

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(0)
    except (OptimizerError, ValueError) as e:
        _fail(renderer, e)


@cli.command()
@click.argument("prompt")
def respond(prompt: str) -> None:
    """Stream the response model's answer to PROMPT."""
    renderer = OutputRenderer(console)

    async def _run() -> None:
        await stream_answer(create_pipeline(), renderer, prompt)

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(0)
    except (OptimizerError, ValueError) as e:
        _fail(renderer, e)


def main() -> None:
    """Entry point for the CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
