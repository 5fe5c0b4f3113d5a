"""Command line entry point for lenetflow simulations."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import Iterable

from lenetflow import config as cfg
from lenetflow.core.errors import ConfigurationError, InputError, InvalidLayer
from lenetflow.core.kernels import BANKS, KERNELS
from lenetflow.core.ops import flatten_positions
from lenetflow.inputs import describe_grids, grid_names, load_grid, make_grid, wave
from lenetflow.receptive import ConvolutionLab
from lenetflow.reporting.trace import TraceSink
from lenetflow.simulation import Simulation

logger = logging.getLogger("lenetflow.cli")


def _emit(payload) -> None:
    print(json.dumps(payload, sort_keys=True))


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--preset",
        choices=sorted(cfg.presets().keys()),
        default="default",
        help="Preset configuration to start from",
    )
    parser.add_argument("--config", type=Path, help="Optional JSON/YAML config override")
    parser.add_argument("--list-presets", action="store_true", help="List presets and exit")
    parser.add_argument("--list-inputs", action="store_true", help="List built-in input grids and exit")
    parser.add_argument("--dump-config", type=Path, help="Write the resolved config to a JSON file")
    parser.add_argument("--input", choices=grid_names(), default="cross", help="Built-in input grid")
    parser.add_argument("--input-file", type=Path, help="Load the input grid from .npy or .json")
    parser.add_argument("--kernel-bank", choices=sorted(BANKS.names()), help="Kernel bank override")
    parser.add_argument("--speed", choices=list(cfg.SPEEDS), help="Playback speed override")
    parser.add_argument("--seed", type=int, help="Seed for the synthetic dense activations")
    parser.add_argument("--play", action="store_true", help="Run timed playback to the last layer")
    parser.add_argument("--steps", type=int, default=0, help="Advance this many layers manually")
    parser.add_argument("--jump", help="Jump to a layer id before printing the stage")
    parser.add_argument("--trace", type=Path, help="Write a JSONL trace of playback events")
    parser.add_argument("--lab", action="store_true", help="Walk the single-convolution lab")
    parser.add_argument("--lab-kernel", choices=sorted(KERNELS), help="Lab kernel override")
    parser.add_argument("--lab-size", type=int, help="Lab input size override")
    parser.add_argument("--stride", type=int, help="Lab stride override")
    parser.add_argument("--padding", type=int, help="Lab padding override")
    parser.add_argument("--animate", action="store_true", help="Run the lab walk on its timer")
    parser.add_argument("--flatten-demo", action="store_true", help="Show how a 5x5 map flattens")
    parser.add_argument("--explain", metavar="TOPIC", help="Ask for a plain-language explanation")
    parser.add_argument("--context", default="", help="Context sent with --explain")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    return parser.parse_args(argv)


def resolve(args: argparse.Namespace) -> cfg.SimulationConfig:
    raw = cfg.load_preset(args.preset)
    if args.config:
        raw = cfg.merge(raw, cfg.load_override(args.config))
    network = raw.setdefault("network", {})
    lab = raw.setdefault("lab", {})
    for key, value in (("kernel_bank", args.kernel_bank), ("speed", args.speed), ("seed", args.seed)):
        if value is not None:
            network[key] = value
    for key, value in (
        ("kernel", args.lab_kernel),
        ("input_size", args.lab_size),
        ("stride", args.stride),
        ("padding", args.padding),
    ):
        if value is not None:
            lab[key] = value
    return cfg.resolve_config(raw)


async def _play(sim: Simulation) -> None:
    runner = sim.runner()
    try:
        sim.sequencer.start()
        await runner.wait_stopped()
    finally:
        runner.close()


async def _animate(lab: ConvolutionLab) -> None:
    from lenetflow.playback.timer import TimedRunner

    runner = TimedRunner(lab.walk, name="walk")
    try:
        lab.walk.start()
        await runner.wait_stopped()
    finally:
        runner.close()


def _lab_event(lab: ConvolutionLab) -> None:
    details = lab.step_details()
    if details is None:
        return
    _emit(
        {
            "cell": list(details.cell),
            "field": details.field.as_dict(),
            "raw": round(details.raw, 6),
            "value": round(details.value, 6),
        }
    )


def run_lab(config: cfg.SimulationConfig, animate: bool) -> None:
    lab = ConvolutionLab(config.lab)
    _emit({"kernel": lab.kernel_label, "output_shape": list(lab.output.shape), "context": lab.explanation_context()})
    lab.walk.subscribe(lambda _state: _lab_event(lab))
    if animate:
        asyncio.run(_animate(lab))
    else:
        lab.walk.start()
        while lab.walk.tick():
            pass


def run_network(args: argparse.Namespace, config: cfg.SimulationConfig) -> None:
    grid = load_grid(args.input_file) if args.input_file else make_grid(args.input, config.network.input_size)
    sim = Simulation(config.network, grid=grid)
    if args.trace:
        TraceSink(args.trace, sim, run_id=cfg.config_hash(config)).attach()
    if args.jump:
        try:
            sim.sequencer.jump_to(args.jump)
        except InvalidLayer as exc:
            raise SystemExit(str(exc)) from None
    for _ in range(max(0, args.steps)):
        sim.sequencer.step_forward()
    if args.play:
        sim.sequencer.subscribe(lambda _state: _emit(sim.stage().summary()))
        asyncio.run(_play(sim))
    if not args.play and not args.steps and not args.jump:
        for layer in sim.graph:
            _emit(sim.stage(layer.id).summary())
    else:
        _emit(sim.stage().summary())


def run_explain(config: cfg.SimulationConfig, topic: str, context: str) -> None:
    from lenetflow.explain import ExplanationService

    service = ExplanationService(config.explain)
    text = asyncio.run(service.explain_concept(topic, context))
    _emit({"topic": topic, "text": text})


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")

    if args.list_presets:
        for name in sorted(cfg.presets().keys()):
            print(name)
        raise SystemExit(0)

    if args.list_inputs:
        for name, summary in sorted(describe_grids().items()):
            print(f"{name}: {summary}")
        raise SystemExit(0)

    try:
        config = resolve(args)
    except ConfigurationError as exc:
        raise SystemExit(f"Configuration error: {exc}") from None
    logger.info("Resolved config %s", cfg.config_hash(config))

    if args.dump_config:
        args.dump_config.parent.mkdir(parents=True, exist_ok=True)
        args.dump_config.write_text(json.dumps(config.to_dict(), indent=2))

    if args.flatten_demo:
        grid = wave(5)
        for index, row, col in flatten_positions(*grid.shape):
            _emit({"index": index, "row": row, "col": col, "value": round(float(grid[row, col]), 6)})
        return

    if args.explain:
        run_explain(config, args.explain, args.context)
        return

    if args.lab:
        run_lab(config, args.animate)
        return

    try:
        run_network(args, config)
    except (ConfigurationError, InputError) as exc:
        raise SystemExit(f"Cannot start simulation: {exc}") from None


if __name__ == "__main__":
    main()
