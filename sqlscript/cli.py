from typing import TYPE_CHECKING, Optional, TextIO

if TYPE_CHECKING:
    from click import Group

    from sqlscript.core.elements import ScriptElement

__all__ = ("get_sqlscript_group", "run_cli")


def get_sqlscript_group() -> "Group":  # noqa: C901
    """Get the sqlscript CLI group.

    Raises:
        MissingDependencyError: If the `rich-click` package is not installed.

    Returns:
        The sqlscript CLI group.
    """
    from sqlscript.exceptions import MissingDependencyError

    try:
        import rich_click as click
    except ImportError as e:
        raise MissingDependencyError(package="rich_click", install_package="rich-click") from e

    from sqlscript.core.dialects import available_dialects

    @click.group(name="sqlscript")
    @click.option("--verbose", help="Enable debug logging.", type=bool, default=False, is_flag=True)
    @click.option(
        "--log-format",
        help="Format of debug log lines written to stderr.",
        type=click.Choice(["simple", "json"]),
        default="simple",
        show_default=True,
    )
    def sqlscript_group(verbose: bool, log_format: str) -> None:
        """Split SQL scripts into statements and extract their parameters."""
        if verbose:
            from sqlscript.utils.logging import configure_logging

            configure_logging(level="DEBUG", log_format=log_format)

    @sqlscript_group.command(name="split", help="Split a SQL script into statements and control commands.")
    @click.argument("script", type=click.File("r", encoding="utf-8"))
    @click.option(
        "--dialect",
        help="SQL dialect of the script.",
        type=click.Choice(available_dialects(), case_sensitive=False),
        default="generic",
        show_default=True,
    )
    @click.option("--keep-delimiters", help="Keep trailing delimiters in statement text.", is_flag=True, default=False)
    @click.option(
        "--blank-lines/--no-blank-lines",
        help="Treat blank lines as statement delimiters.",
        default=None,
    )
    @click.option("--params/--no-params", help="Extract bind parameters and variables.", default=True)
    @click.option(
        "--format",
        "output_format",
        help="Output format.",
        type=click.Choice(["table", "json"]),
        default="table",
        show_default=True,
    )
    def split_script(  # pyright: ignore[reportUnusedFunction]
        script: "TextIO",
        dialect: str,
        keep_delimiters: bool,
        blank_lines: Optional[bool],
        params: bool,
        output_format: str,
    ) -> None:
        import uuid

        from sqlscript._serialization import encode_json
        from sqlscript.core.config import ParseConfig
        from sqlscript.core.segmenter import StatementSegmenter
        from sqlscript.utils.logging import set_correlation_id

        set_correlation_id(str(uuid.uuid4()))
        config = ParseConfig(dialect=dialect, blank_line_is_delimiter=blank_lines, parameters_enabled=params)
        elements = StatementSegmenter(config).parse_all(
            script.read(), keep_delimiters=keep_delimiters, extract_parameters=params
        )

        if output_format == "json":
            click.echo(encode_json([element.to_dict() for element in elements]))
            return
        _print_elements(elements)

    @sqlscript_group.command(name="dialects", help="List the supported SQL dialects.")
    def list_dialects() -> None:  # pyright: ignore[reportUnusedFunction]
        from rich import get_console
        from rich.table import Table

        from sqlscript.core.dialects import get_dialect

        console = get_console()
        table = Table(title="Dialects")
        table.add_column("Name", style="cyan")
        table.add_column("Delimiters")
        table.add_column("Blocks")
        for name in available_dialects():
            dialect = get_dialect(name)
            table.add_row(
                name,
                " ".join(dialect.statement_delimiters),
                ", ".join(sorted(dialect.block_begin_keywords | dialect.block_header_keywords)),
            )
        console.print(table)

    return sqlscript_group


def _print_elements(elements: "list[ScriptElement]") -> None:
    from rich import get_console
    from rich.table import Table

    from sqlscript.core.elements import ControlCommand, Statement

    console = get_console()
    if not elements:
        console.print("[yellow]No statements found[/]")
        return

    table = Table(title="Script Elements")
    table.add_column("#", justify="right")
    table.add_column("Type", style="cyan")
    table.add_column("Offset", justify="right")
    table.add_column("Length", justify="right")
    table.add_column("Text")
    table.add_column("Parameters")
    for index, element in enumerate(elements, start=1):
        if isinstance(element, ControlCommand):
            kind = f"{element.prefix}{element.command_id}" if element.command_id else "control"
            parameters = element.parameter or ""
        else:
            kind = "statement"
            parameters = (
                ", ".join(parameter.text for parameter in element.parameters)
                if isinstance(element, Statement)
                else ""
            )
        table.add_row(str(index), kind, str(element.offset), str(element.length), element.text, parameters)
    console.print(table)
    console.print(f"[green]{len(elements)} element(s)[/]")


def run_cli() -> None:  # pragma: no cover
    """Entry point of the ``sqlscript`` console script."""
    get_sqlscript_group()()
