"""CLI entry point for dicomvol."""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from dicomvol import __version__
from dicomvol._console import console, err_console
from dicomvol.core.errors import DicomIOError, InputNotFound
from dicomvol.core.types import DicomIOConfig, DicomMeta, SliceRecord

app = typer.Typer(
    name="dicomvol",
    help="Convert between DICOM slice directories, DICOM files, and voxel volumes.",
    add_completion=False,
)

logger = logging.getLogger("dicomvol")


def version_callback(value: bool):
    if value:
        console.print(f"dicomvol {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    verbose: bool = typer.Option(
        False,
        "-v",
        "--verbose",
        help="Show detailed processing information.",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
):
    """Convert between DICOM slice directories, DICOM files, and voxel volumes."""
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=log_level, format="%(levelname)s: %(message)s")


@app.command()
def info(
    input_path: Path = typer.Argument(
        ...,
        help="DICOM file or directory of single-slice DICOM files.",
    ),
    extension: str = typer.Option(
        "dcm",
        "--ext",
        help="File extension of slice files in a directory.",
    ),
):
    """List the slices found in a DICOM file or directory and check the series."""
    from dicomvol.io.dicom_reader import scan_dicom_dir, sort_slices
    from dicomvol.io.series import validate_series
    from dicomvol.io.slice_record import probe_slice

    config = DicomIOConfig(extension=extension)
    try:
        if input_path.is_file():
            records = [probe_slice(input_path)]
        else:
            records = scan_dicom_dir(input_path, config)
        _print_slice_table(sort_slices(records), input_path)
        geometry = validate_series(records)
    except InputNotFound as e:
        err_console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(code=4)
    except DicomIOError as e:
        err_console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    ux, uy, uz = geometry.spacing
    console.print(
        f"\nSeries {geometry.records[0].series_uid}: "
        f"{geometry.nx}x{geometry.ny}x{geometry.nz}, "
        f"spacing ({ux:g}, {uy:g}, {uz:g}) mm"
    )


@app.command()
def convert(
    input_path: Path = typer.Argument(
        ...,
        help="DICOM file or directory of single-slice DICOM files to read.",
    ),
    output: Path = typer.Argument(
        ...,
        help=(
            "Output file with the slice extension, or a directory (existing, or a "
            "path without suffix) to fill with one file per slice."
        ),
    ),
    patient_name: str = typer.Option(None, "--patient-name", help="Patient name to write."),
    patient_id: str = typer.Option(None, "--patient-id", help="Patient ID to write."),
    series_description: str = typer.Option(
        None, "--series-description", help="Series description to write."
    ),
    extension: str = typer.Option(
        "dcm",
        "--ext",
        help="File extension of slice files (read and write).",
    ),
    normalize: bool = typer.Option(
        True,
        "--normalize/--no-normalize",
        help="Scale the volume to [0, 1] after reading (needed for 8-bit output).",
    ),
    staging: bool = typer.Option(
        False,
        "--staging",
        help="Write slice directories atomically via a staging directory.",
    ),
):
    """Read a DICOM volume and write it back out as a file or slice directory."""
    from dicomvol.io.dicom_reader import read_dcm, read_dcm_dir
    from dicomvol.io.dicom_writer import write_dcm, write_dcm_dir

    config = DicomIOConfig(extension=extension, staging=staging)
    single_file = config.matches(output)
    if output.suffix and not single_file and not output.is_dir():
        err_console.print(
            f"[red]Error: output {escape(str(output))} must end in .{escape(extension)} "
            f"or be a directory[/red]"
        )
        raise typer.Exit(code=1)

    meta = None
    if patient_name or patient_id or series_description:
        meta = DicomMeta(
            patient_name=patient_name,
            patient_id=patient_id,
            series_descrip=series_description,
        )

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            task = progress.add_task(f"Reading {input_path}...", total=None)
            if input_path.is_dir():
                volume = read_dcm_dir(input_path, config=config, normalize=normalize)
            else:
                volume = read_dcm(input_path, normalize=normalize)

            progress.update(task, description=f"Writing {output}...")
            if single_file:
                output.parent.mkdir(parents=True, exist_ok=True)
                written = [write_dcm(output, volume, meta, config)]
            else:
                output.mkdir(parents=True, exist_ok=True)
                written = write_dcm_dir(output, volume, meta, config)
    except InputNotFound as e:
        err_console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(code=4)
    except DicomIOError as e:
        err_console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    console.print(
        f"[green]Wrote {len(written)} file(s)[/green] "
        f"({volume.nx}x{volume.ny}x{volume.nz}) to {output}"
    )


def _print_slice_table(records: list[SliceRecord], input_path: Path) -> None:
    """Display a Rich table of probed slice files."""
    table = Table(title=f"DICOM slices in {input_path}")
    table.add_column("File", style="bold")
    table.add_column("Instance", justify="right")
    table.add_column("Dimensions", justify="right")
    table.add_column("Spacing (mm)", justify="right")
    table.add_column("Status")

    for record in records:
        if record.valid:
            table.add_row(
                record.path.name,
                str(record.instance_number),
                f"{record.nx}x{record.ny}x{record.nz}",
                f"{record.ux:g} x {record.uy:g} x {record.uz:g}",
                "[green]ok[/green]",
            )
        else:
            table.add_row(
                record.path.name, "", "", "", f"[red]{escape(str(record.error))}[/red]"
            )

    console.print(table)
