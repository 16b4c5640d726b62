from pathlib import Path

from app.analysis.models import AnalysisType

_DEFAULT_PROMPT_DIR = Path(__file__).parent / "prompts"


class PromptLoadError(Exception):
    """Raised when a bundled prompt template cannot be read."""


def load_prompt_template(analysis_type: AnalysisType, prompt_dir: Path | None = None) -> str:
    """Load the prompt template for one atomic analysis type.

    Args:
        analysis_type: Atomic analysis type; selects ``<value>.txt``.
        prompt_dir: Directory holding the templates.
                    Defaults to the bundled prompts directory.

    Returns:
        The raw template string with a ``{text}`` placeholder.

    Raises:
        PromptLoadError: if the file cannot be read.
    """
    directory = prompt_dir if prompt_dir is not None else _DEFAULT_PROMPT_DIR
    path = directory / f"{analysis_type.value}.txt"
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise PromptLoadError(f"Failed to load prompt template {path.name}: {exc}") from exc


def load_prompt_templates(prompt_dir: Path | None = None) -> dict[AnalysisType, str]:
    """Load templates for every atomic analysis type."""
    return {
        analysis_type: load_prompt_template(analysis_type, prompt_dir)
        for analysis_type in AnalysisType.atomic()
    }
