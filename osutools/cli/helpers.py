"""Click plumbing shared by the commands"""

from typing import Any, Callable

import click
from click.core import ParameterSource

DUMPER_OPTIONS = "dumper_options"

# Sources that mean the user did not ask for anything in particular
IMPLICIT_SOURCES = (ParameterSource.DEFAULT, ParameterSource.DEFAULT_MAP)


def dumper_option(*param_decls: str, **attrs: Any) -> Callable:
    """Option meant for save_beatmap. It is not passed to the command as its
    own argument, it ends up in a dumper_options dict instead, and only when
    given on the command line so that save_beatmap's defaults still apply"""
    return click.option(
        *param_decls, callback=collect_dumper_option, expose_value=False, **attrs
    )


def collect_dumper_option(
    ctx: click.Context, param: click.Parameter, value: Any
) -> None:
    assert param.name is not None
    if ctx.get_parameter_source(param.name) not in IMPLICIT_SOURCES:
        ctx.params.setdefault(DUMPER_OPTIONS, {})[param.name] = value
