"""vectordesk rich error messages — actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from vectordesk.cli.errors import err_not_found
    console.print(err_not_found("Project", "abc"))
    raise typer.Exit(1)
"""

from __future__ import annotations

from vectordesk.errors import ValidationError, ValidationKind


def err_not_found(kind: str, ref: str) -> str:
    """Project / folder / document reference did not resolve."""
    hint = {
        "Project": "vectordesk projects list",
        "Folder": "vectordesk folders list <project>",
        "Document": "vectordesk documents list <project> <folder>",
    }.get(kind, "vectordesk status")
    return (
        f"[yellow]{kind} not found:[/] '{ref}'\n"
        f"  Run:  {hint}  to see what exists."
    )


def err_validation(error: ValidationError) -> str:
    """Inline, field-scoped form error."""
    hint = {
        ValidationKind.OUT_OF_RANGE: "Use a chunk size of 100–5000 and an overlap of at most half of it.",
        ValidationKind.EMPTY_OPTIONS: "Add options:  --field <key>:select:<opt1>,<opt2>",
        ValidationKind.DUPLICATE_KEY: "Give every --field a distinct key.",
        ValidationKind.EMPTY_KEY: "Give every --field a key:  --field <key>:<type>",
        ValidationKind.TOO_SHORT: "Use a name of at least 3 characters.",
        ValidationKind.KEY_MISMATCH: "Give each metadata field exactly one --field entry.",
    }[error.kind]
    return f"[red]Error:[/] {error.message}\n  {hint}"


def err_transport(detail: str) -> str:
    """Backend call failed; local state was not changed."""
    return (
        f"[red]Error:[/] The backend request failed ({detail}).\n"
        "  Nothing was changed. Check the API URL and your connection, then retry."
    )


def err_invalid_api_key(env_var: str = "VECTORDESK_API_KEY") -> str:
    return (
        "[red]Error:[/] Invalid or missing API key.\n"
        f"  Set:  export {env_var}=<your key>"
    )


def err_upload(detail: str) -> str:
    """File rejected before upload."""
    return (
        f"[red]Error:[/] Upload rejected: {detail}\n"
        "  PDF files only, max 20MB; metadata must match the folder's fields.\n"
        "  Run:  vectordesk folders show <project> <folder>  to see the fields."
    )


def err_bad_field_spec(spec: str) -> str:
    return (
        f"[red]Error:[/] Cannot parse metadata field '{spec}'.\n"
        "  Format:  <key>:<text|number|date|select>[:<opt1>,<opt2>][:optional]"
    )


def err_config(detail: str) -> str:
    return (
        f"[red]Error:[/] Invalid configuration: {detail}\n"
        "  Fix vectordesk.yaml or ~/.vectordesk/config.yaml and retry."
    )


def warn_settings_change() -> str:
    """Shown before folder settings are edited."""
    return (
        "[yellow]⚠[/] Changing chunking settings only affects documents uploaded afterwards.\n"
        "  Re-upload existing documents to process them with the new settings."
    )
