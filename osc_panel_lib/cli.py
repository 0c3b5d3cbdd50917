"""
OSC Panel - CLI Application

Inspect and drive saved panels from the terminal: list layouts, show the
preset tree and visible sections, toggle presets, send control values,
import and export layouts.

Usage:
    python -m osc_panel_lib show
    python -m osc_panel_lib toggle Drums on
    python -m osc_panel_lib send Cutoff 0.4
"""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from rich import box
from rich.console import Console
from rich.table import Table

from .codec import encode_layout
from .controller import PanelController
from .interactions import Choose, Press, SetToggle, SetValue, current_value
from .model import (
    AppState, ButtonSpec, ChoiceSpec, Control, Layout, SliderSpec,
    ToggleSpec, default_state,
)
from .reducer import DuplicateLayout, ImportLayout, Interact, TogglePreset
from .settings import load_settings
from .storage import StateStorage
from .transport import OscTransport
from .tree import enabled_ids

logger = logging.getLogger(__name__)

console = Console()


def _find_layout(state: AppState, key: Optional[str]) -> Optional[Layout]:
    if key is None:
        return state.selected_layout
    for layout in state.layouts:
        if key in (layout.id, layout.name):
            return layout
    return None


def _find_control(layout: Layout, key: str) -> Optional[Control]:
    for control in layout.controls:
        if key in (control.id, control.name):
            return control
    return None


def _find_preset(layout: Layout, key: str) -> Optional[str]:
    for node, _ in layout.preset_tree.walk():
        if key in (node.id, node.name):
            return node.id
    return None


def _interaction_for(control: Control, raw: str):
    """Map a command-line value onto the interaction of the control's type."""
    spec = control.spec
    if isinstance(spec, ButtonSpec):
        return Press()
    if isinstance(spec, ToggleSpec):
        return SetToggle(raw.lower() in ("1", "on", "true", "yes"))
    if isinstance(spec, ChoiceSpec):
        if raw in spec.options:
            return Choose(spec.options.index(raw))
        return Choose(int(raw))
    if isinstance(spec, SliderSpec):
        return SetValue(float(raw))
    raise ValueError(f"{control.type.value} controls cannot be driven from the command line")


# =============================================================================
# COMMANDS
# =============================================================================

def cmd_layouts(controller: PanelController, args) -> int:
    state = controller.state
    table = Table(title="Layouts", box=box.ROUNDED)
    table.add_column("", style="green")
    table.add_column("Name", style="cyan")
    table.add_column("Controls", justify="right")
    table.add_column("Presets", justify="right")
    table.add_column("Port")
    for layout in state.layouts:
        marker = "●" if layout.id == state.selected_layout_id else ""
        table.add_row(
            marker, layout.name, str(len(layout.controls)),
            str(len(layout.preset_tree)), layout.port or f"({state.port})",
        )
    console.print(table)
    return 0


def cmd_show(controller: PanelController, args) -> int:
    layout = _find_layout(controller.state, args.layout)
    if layout is None:
        console.print("[red]Layout not found.[/red]")
        return 1

    enabled = enabled_ids(layout.preset_tree)
    tree_table = Table(title=f"Presets - {layout.name}", box=box.ROUNDED)
    tree_table.add_column("Preset", style="cyan")
    tree_table.add_column("Toggle", justify="center")
    tree_table.add_column("Active", justify="center")
    for node, depth in layout.preset_tree.walk():
        tree_table.add_row(
            "  " * depth + node.name,
            "on" if node.is_on else "off",
            "[green]yes[/green]" if node.id in enabled else "[dim]no[/dim]",
        )
    console.print(tree_table)

    for section in controller.sections(layout.id):
        table = Table(title=section.title, box=box.SIMPLE)
        table.add_column("Control", style="cyan")
        table.add_column("Type")
        table.add_column("Address")
        table.add_column("Value", justify="right")
        for control in section.controls:
            value = current_value(control)
            table.add_row(
                control.name, control.type.value, control.address,
                "" if value is None else f"{value:.2f}",
            )
        console.print(table)
    return 0


def cmd_toggle(controller: PanelController, args) -> int:
    layout = _find_layout(controller.state, args.layout)
    if layout is None:
        console.print("[red]Layout not found.[/red]")
        return 1
    preset_id = _find_preset(layout, args.preset)
    if preset_id is None:
        console.print(f"[red]Preset not found: {args.preset}[/red]")
        return 1
    controller.dispatch(TogglePreset(layout.id, preset_id, args.switch == "on"))
    return 0


def cmd_send(controller: PanelController, args) -> int:
    layout = _find_layout(controller.state, args.layout)
    if layout is None:
        console.print("[red]Layout not found.[/red]")
        return 1
    control = _find_control(layout, args.control)
    if control is None:
        console.print(f"[red]Control not found: {args.control}[/red]")
        return 1
    try:
        interaction = _interaction_for(control, args.value)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        return 1
    controller.dispatch(Interact(layout.id, control.id, interaction))
    return 0


def cmd_export(controller: PanelController, args) -> int:
    layout = _find_layout(controller.state, args.layout)
    if layout is None:
        console.print("[red]Layout not found.[/red]")
        return 1
    Path(args.path).write_text(encode_layout(layout), encoding="utf-8")
    console.print(f"Exported '{layout.name}' to {args.path}")
    return 0


def cmd_import(controller: PanelController, args) -> int:
    before = controller.state.selected_layout_id
    controller.dispatch(ImportLayout(Path(args.path).read_bytes()))
    if controller.state.selected_layout_id == before:
        console.print(f"[red]Could not import {args.path}[/red]")
        return 1
    console.print(f"Imported '{controller.state.selected_layout.name}'")
    return 0


def cmd_duplicate(controller: PanelController, args) -> int:
    layout = _find_layout(controller.state, args.layout)
    if layout is None:
        console.print("[red]Layout not found.[/red]")
        return 1
    controller.dispatch(DuplicateLayout(layout.id))
    console.print(f"Created '{controller.state.selected_layout.name}'")
    return 0


# =============================================================================
# ENTRY POINT
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="osc-panel",
        description="OSC Panel - preset-gated OSC control layouts",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument("--config", type=Path, help="Settings YAML file")
    parser.add_argument("--state", type=Path, help="State JSON file")
    parser.add_argument("--layout", help="Layout name or id (default: selected layout)")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("layouts", help="List layouts").set_defaults(func=cmd_layouts)
    sub.add_parser("show", help="Show presets and visible controls").set_defaults(func=cmd_show)

    toggle = sub.add_parser("toggle", help="Toggle a preset and announce it over OSC")
    toggle.add_argument("preset", help="Preset name or id")
    toggle.add_argument("switch", choices=["on", "off"])
    toggle.set_defaults(func=cmd_toggle)

    send = sub.add_parser("send", help="Drive a control and send its OSC message")
    send.add_argument("control", help="Control name or id")
    send.add_argument("value", nargs="?", default="1", help="Value (slider), on/off (toggle), option or index (choice)")
    send.set_defaults(func=cmd_send)

    export = sub.add_parser("export", help="Export a layout as JSON")
    export.add_argument("path")
    export.set_defaults(func=cmd_export)

    imp = sub.add_parser("import", help="Import a layout or app state JSON file")
    imp.add_argument("path")
    imp.set_defaults(func=cmd_import)

    sub.add_parser("duplicate", help="Duplicate a layout").set_defaults(func=cmd_duplicate)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = load_settings(args.config)

    # Configure logging
    level = logging.DEBUG if args.verbose else getattr(logging, settings.log_level, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s"
    )

    storage = StateStorage(args.state or settings.state_path)
    state = storage.load()
    if state is None:
        state = replace(default_state(), host=settings.host, port=settings.port)

    transport = OscTransport()
    controller = PanelController(state=state, transport=transport, storage=storage)
    try:
        return args.func(controller, args)
    except OSError as e:
        console.print(f"[red]{e}[/red]")
        return 1
    finally:
        transport.close()


if __name__ == "__main__":
    sys.exit(main())
