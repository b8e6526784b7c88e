# fml/cli/interface.py
import sys
import json
from pathlib import Path
from typing import Any, Dict, Iterable, Optional
from dataclasses import fields as dataclass_fields

import click
from click_option_group import optgroup
import structlog

from fml import __version__ as app_version
from fml.config.settings import RenderConfig, TAG_STYLES, get_tag_style
from fml.config.loader import load_and_merge_configs, settings_for_profile, load_context_file
from fml.logging_setup import configure_logging
from fml.core.loader import FilesystemLoader
from fml.core.output import write_to_stdout, write_to_file
from fml.core.parser import parse
from fml.core.pipeline import build_options, parse_fml
from fml.core.tokenizer import tokenize
from fml.cli.console_output import print_node_tree
from fml.exceptions import FmlError, ConfigError

log = structlog.get_logger(__name__)

def _coerce_var_value(raw: str) -> Any:
    # json literals (numbers, booleans, arrays, objects) are decoded; anything else stays a string.
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw

def parse_user_vars(pairs: Iterable[str]) -> Dict[str, Any]:
    """Turns KEY=VALUE pairs into a context dict; dotted keys build nested objects."""
    result: Dict[str, Any] = {}
    for pair in pairs:
        if "=" not in pair:
            raise ConfigError(f"Invalid --var '{pair}': expected KEY=VALUE")
        key, raw_value = pair.split("=", 1)
        segments = [s.strip() for s in key.split(".")]
        if not all(segments):
            raise ConfigError(f"Invalid --var key '{key}'")
        target = result
        for segment in segments[:-1]:
            nested = target.setdefault(segment, {})
            if not isinstance(nested, dict):
                raise ConfigError(f"--var '{key}' conflicts with an earlier scalar value for '{segment}'")
            target = nested
        target[segments[-1]] = _coerce_var_value(raw_value)
    return result

def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged

def _build_render_config(ctx: click.Context, cli_params: Dict[str, Any]) -> RenderConfig:
    # precedence: dataclass defaults < user toml < project toml < profile < command line.
    raw_configs = load_and_merge_configs()
    effective_options = settings_for_profile(raw_configs, cli_params.get("active_config_profile_name"))

    for attr in ("template_path", "base_dir", "tag_style", "context_file", "output_file"):
        if ctx.get_parameter_source(attr) == click.core.ParameterSource.COMMANDLINE or attr == "template_path":
            effective_options[attr] = cli_params[attr]

    valid_fields = {f.name for f in dataclass_fields(RenderConfig) if f.init}
    unknown = set(effective_options) - valid_fields
    if unknown:
        log.warning("ignoring_unknown_config_keys", keys=sorted(unknown))
    return RenderConfig(**{k: v for k, v in effective_options.items() if k in valid_fields})

def _build_context(config: RenderConfig, user_vars: Iterable[str]) -> Dict[str, Any]:
    context: Dict[str, Any] = dict(config.variables)
    if config.context_file:
        context = deep_merge(context, load_context_file(config.context_file))
    context = deep_merge(context, parse_user_vars(user_vars))
    log.debug("render_context_built", keys=sorted(context))
    return context

def _run_cli_action(action):
    # shared error reporting for subcommands.
    try:
        action()
    except click.exceptions.Exit:
        raise
    except FmlError as e:
        log.error("handled_application_error_in_cli", error_type=type(e).__name__, message=str(e), path=e.path)
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(1)
    except click.ClickException as e:
        log.error("click_exception_in_cli", error_type=type(e).__name__, message=str(e))
        e.show(); sys.exit(e.exit_code)
    except Exception as e:
        log.critical("unexpected_critical_error_in_cli", message=str(e), exc_info=True)
        click.secho(f"Unexpected critical error: {e}. Please report this.", fg="red", err=True)
        sys.exit(1)


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.option("--verbose", "-v", "verbosity_level", count=True, help="Verbosity: -v info, -vv debug.")
@click.option("--force-json-logs", "force_json_logs", is_flag=True, default=False, help="Force JSON logs.")
@click.version_option(version=app_version, prog_name="fml", help="Show version and exit.")
def main_cli_group(verbosity_level: int, force_json_logs: bool):
    """fml: render FML templates (text, tags, {{ placeholders }} and includes)."""
    log_level = "warning"
    if verbosity_level == 1: log_level = "info"
    elif verbosity_level >= 2: log_level = "debug"
    configure_logging(log_level_str=log_level, force_json_logs=force_json_logs)


@main_cli_group.command("render")
@click.argument("template_path", type=click.Path(dir_okay=False, path_type=Path))
@optgroup.group("Context Options", help="Variables available to {{ placeholders }}.")
@optgroup.option("--var", "user_vars", multiple=True, metavar="KEY=VALUE", help="Set a variable; dotted keys nest, JSON values are decoded.")
@optgroup.option("--context", "context_file", type=click.Path(exists=True, dir_okay=False, path_type=Path), default=None, help="JSON or TOML file with variables.")
@optgroup.group("Template Options", help="How the template and its includes are located and read.")
@optgroup.option("--base-dir", "base_dir", type=click.Path(file_okay=False, path_type=Path), default=None, help="Resolve TEMPLATE_PATH relative to this directory.")
@optgroup.option("--tag-style", "tag_style", type=click.Choice(list(TAG_STYLES)), default=None, help="Tag and include delimiter style. Default: xml.")
@optgroup.group("Output & Behavior", help="Where the rendered text goes and which profile to use.")
@optgroup.option("-o", "--output", "output_file", type=click.Path(dir_okay=False, writable=True, path_type=Path), default=None, help="Write the rendered text to this file.")
@optgroup.option("--config-profile", "active_config_profile_name", default=None, help="Load a profile from config file(s).")
@click.pass_context
def render_command(ctx: click.Context, **cli_params: Any):
    """Render TEMPLATE_PATH and print the result."""
    log.debug("cli_command_invoked", command="render", params=cli_params)

    def action():
        config = _build_render_config(ctx, cli_params)
        context = _build_context(config, cli_params.get("user_vars") or ())
        rendered = parse_fml(
            config.template_path,
            context,
            base_dir=config.base_dir,
            tag_style=config.tag_style,
            loader=FilesystemLoader(encoding=config.encoding),
        )
        if config.output_file:
            write_to_file(config.output_file, rendered, encoding=config.encoding)
            click.echo(f"Info: Output written to: {config.output_file}", err=True)
        else:
            write_to_stdout(rendered)

    _run_cli_action(action)


@main_cli_group.command("tree")
@click.argument("template_path", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--base-dir", "base_dir", type=click.Path(file_okay=False, path_type=Path), default=None, help="Resolve TEMPLATE_PATH relative to this directory.")
@click.option("--tag-style", "tag_style", type=click.Choice(list(TAG_STYLES)), default=None, help="Tag and include delimiter style. Default: xml.")
def tree_command(template_path: Path, base_dir: Optional[Path], tag_style: Optional[str]):
    """Show the parsed structure of TEMPLATE_PATH without rendering it."""
    log.debug("cli_command_invoked", command="tree", template=str(template_path))

    def action():
        entry, options = build_options(template_path, base_dir, tag_style)
        raw = options.loader.load(entry.name, options.base_dir)
        style = get_tag_style(tag_style)
        try:
            nodes = parse(tokenize(raw, style), style)
        except FmlError as e:
            raise e.with_path(str(entry)) from e
        print_node_tree(str(entry), nodes, style)

    _run_cli_action(action)
