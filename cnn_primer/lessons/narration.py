from pathlib import Path

from jinja2 import Environment, FileSystemLoader, TemplateNotFound

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"

env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=False,
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=False,
)


def render_narration(template_name: str, **kwargs) -> str:
    """
    Render the prose for one lesson with its concrete numbers.

    Raises:
        FileNotFoundError: If no template named ``<template_name>.j2`` exists
    """
    try:
        tmpl = env.get_template(f"{template_name}.j2")
    except TemplateNotFound as e:
        raise FileNotFoundError(f"Missing narration template: {TEMPLATE_DIR / (template_name + '.j2')}") from e
    return tmpl.render(**kwargs).strip()
