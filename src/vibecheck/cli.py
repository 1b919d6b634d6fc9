"""CLI entry point for vibecheck."""

import asyncio
import logging

import click
import uvicorn

from . import mood as mood_classifier
from .backends import ProviderRouter
from .config import get_backfill_music, load_settings, save_settings
from .core import ChatOptions, CustomProxy
from .errors import ConfigurationError
from .export import describe_suggestion
from .pipeline import ResponsePipeline
from .suggestions import visible


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(verbose: bool):
    """A mood-aware companion that answers with a little ritual."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.option("--port", default=8080, help="Port to serve on.")
@click.option("--host", default="127.0.0.1", help="Host to bind to.")
def serve(port: int, host: str):
    """Start the web API."""
    click.echo(f"Starting vibecheck on http://{host}:{port}")
    uvicorn.run("vibecheck.server:app", host=host, port=port, reload=False)


@main.command()
@click.argument("text")
def mood(text: str):
    """Print the mood detected in TEXT."""
    click.echo(mood_classifier.classify(text))


@main.command()
@click.argument("text")
@click.option("--model", default=None, help="Model or custom proxy id.")
@click.option("--temperature", type=float, default=None)
@click.option("--max-tokens", type=int, default=None)
def chat(text: str, model: str | None, temperature: float | None, max_tokens: int | None):
    """Send TEXT and print the reply with its suggestions."""
    settings = load_settings()
    router = ProviderRouter(settings)
    options = ChatOptions(model_id=model, temperature=temperature, max_tokens=max_tokens)
    try:
        router.resolve(options.model_id)
    except ConfigurationError as e:
        raise click.ClickException(str(e))

    pipeline = ResponsePipeline(router, backfill_music=get_backfill_music())
    reply = asyncio.run(pipeline.generate(text, [], options))

    click.echo(reply.content)
    for s in visible(reply.suggestions):
        click.echo(f"  • {describe_suggestion(s)}")


@main.group()
def proxy():
    """Manage custom completion endpoints."""
    pass


@proxy.command("list")
def proxy_list():
    settings = load_settings()
    if not settings.custom_proxies:
        click.echo("No custom proxies configured.")
        return
    for p in settings.custom_proxies:
        click.echo(f"{p.id}\t{p.config_name}\t{p.model_name}\t{p.endpoint}")


@proxy.command("add")
@click.option("--name", "config_name", default="", help="Display name.")
@click.option("--model", "model_name", default="", help="Model name sent upstream.")
@click.option("--endpoint", required=True, help="Chat-completions URL.")
@click.option("--api-key", default=None)
@click.option("--prompt", "custom_prompt", default=None, help="System prompt replacing the default.")
@click.option("--features", default="", help="Comma-separated tags.")
def proxy_add(config_name, model_name, endpoint, api_key, custom_prompt, features):
    """Register a new custom proxy and print its id."""
    settings = load_settings()
    try:
        p = CustomProxy.new(
            config_name=config_name,
            model_name=model_name,
            endpoint=endpoint,
            api_key=api_key,
            custom_prompt=custom_prompt,
            features=features,
        )
    except ConfigurationError as e:
        raise click.ClickException(str(e))
    settings.add_proxy(p)
    save_settings(settings)
    click.echo(p.id)


@proxy.command("remove")
@click.argument("proxy_id")
def proxy_remove(proxy_id: str):
    settings = load_settings()
    if not settings.remove_proxy(proxy_id):
        raise click.ClickException(f"No such proxy: {proxy_id}")
    save_settings(settings)
    click.echo(f"Removed {proxy_id}")
