"""Flow prompt templates.

Each flow has a ``system.md`` and a ``user.md`` under
``templates/flows/<template>/``. Templates are addressed by path-like
keys and rendered by replacing ``{placeholder}`` names.

Usage:
    from studyhub.prompts.registry import get_prompt

    prompt = get_prompt(
        "flows/summarize_content/user",
        content="Photosynthesis converts light energy...",
    )
"""

from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)

# Templates ship inside the package
PROMPTS_DIR = Path(__file__).parent / "templates"

# Only bare identifiers are placeholders, so JSON examples pass through
PLACEHOLDER = re.compile(r"\{([a-z_][a-z0-9_]*)\}")


@lru_cache(maxsize=64)
def load_template(key: str) -> str:
    """Raw template text for ``key`` (e.g. "flows/generate_quiz/user").

    Raises:
        FileNotFoundError: If no template exists for the key
    """
    path = PROMPTS_DIR / f"{key}.md"
    if not path.is_file():
        raise FileNotFoundError(f"Prompt not found: {key} (looked at {path})")
    return path.read_text(encoding="utf-8")


def placeholders(key: str) -> set[str]:
    """Placeholder names used by a template."""
    return set(PLACEHOLDER.findall(load_template(key)))


def get_prompt(key: str, use_cache: bool = True, **variables: str) -> str:
    """Render a template.

    Placeholders without a value are left as they are.

    Raises:
        FileNotFoundError: If no template exists for the key
    """
    if not use_cache:
        load_template.cache_clear()
    template = load_template(key)

    def substitute(match: re.Match[str]) -> str:
        name = match.group(1)
        return str(variables[name]) if name in variables else match.group(0)

    return PLACEHOLDER.sub(substitute, template)


def list_prompts() -> list[str]:
    """All template keys, sorted."""
    if not PROMPTS_DIR.is_dir():
        logger.warning("prompts_dir_not_found", path=str(PROMPTS_DIR))
        return []
    return sorted(
        path.relative_to(PROMPTS_DIR).with_suffix("").as_posix()
        for path in PROMPTS_DIR.rglob("*.md")
    )


def clear_cache() -> None:
    load_template.cache_clear()
