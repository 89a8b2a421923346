"""Command-line entry point: ``chipvm <rom_path> [--slow|--med|--fast]``."""

import argparse
import sys
from typing import Optional, Sequence

from chipvm.config import DEFAULT_SPEED, EmulatorConfig
from chipvm.errors import Chip8Error, RomLoadError, UsageError
from chipvm.logging import LEVELS, logger
from chipvm.machine import Machine
from chipvm.rendering import COLOR_SCHEMES
from chipvm.session import Session
from chipvm.timers import create_timers


class ArgumentParser(argparse.ArgumentParser):
    """argparse that raises ``UsageError`` instead of exiting with status 2."""

    def error(self, message):
        raise UsageError(message)


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(
        prog="chipvm",
        description="CHIP-8 virtual machine",
        allow_abbrev=False,
    )
    parser.add_argument("rom_path", help="Raw CHIP-8 ROM image, loaded at 0x200")

    speed = parser.add_mutually_exclusive_group()
    speed.add_argument("--slow", dest="speed", action="store_const", const="slow", help="~540 Hz")
    speed.add_argument("--med", dest="speed", action="store_const", const="med", help="~960 Hz (default)")
    speed.add_argument("--fast", dest="speed", action="store_const", const="fast", help="~1380 Hz")
    parser.set_defaults(speed=DEFAULT_SPEED)

    parser.add_argument(
        "--threaded-timers", action="store_true",
        help="Tick the delay and sound timers from a background thread",
    )
    parser.add_argument(
        "--strict-sprites", action="store_true",
        help="Treat sprite pixels outside the screen as fatal instead of wrapping them",
    )
    parser.add_argument("--trace", action="store_true", help="Log every executed instruction")
    parser.add_argument("--dump-regs", action="store_true", help="Log registers after every instruction")
    parser.add_argument("--scale", type=int, default=16, help="Window pixels per CHIP-8 pixel")
    parser.add_argument("--colors", default="classic", choices=sorted(COLOR_SCHEMES), help="Display color scheme")
    parser.add_argument("--seed", type=int, default=0, help="Random number generator seed")
    parser.add_argument("--log-level", default="INFO", choices=LEVELS, type=str.upper)
    parser.add_argument("--headless", action="store_true", help="Run without a window, keyboard or audio")
    parser.add_argument("--max-cycles", type=int, default=None, help="Stop after this many cycles")
    return parser


def config_from_args(args: argparse.Namespace) -> EmulatorConfig:
    log_level = "DEBUG" if (args.trace or args.dump_regs) else args.log_level
    return EmulatorConfig(
        speed=args.speed,
        timer_mode="threaded" if args.threaded_timers else "inline",
        sprite_wrap=not args.strict_sprites,
        trace=args.trace,
        dump_registers=args.dump_regs,
        render_scale=args.scale,
        color_scheme=args.colors,
        log_level=log_level,
        seed=args.seed,
    )


def create_session(config: EmulatorConfig, rom_path: str, headless: bool = False) -> Session:
    """Build a machine, load the ROM, then attach collaborators."""
    machine = Machine(
        timers=create_timers(config.timer_mode),
        sprite_wrap=config.sprite_wrap,
        seed=config.seed,
        trace=config.trace,
        dump_registers=config.dump_registers,
    )
    machine.load_file(rom_path)
    logger.info(f"Loaded: {rom_path}")

    if headless:
        return Session(machine, cycle_ns=config.cycle_ns)

    from chipvm.frontend import PygameBuzzer, PygameDisplay, PygameKeyboard

    return Session(
        machine,
        display=PygameDisplay(config.render_scale, config.color_scheme),
        input_source=PygameKeyboard(),
        audio=PygameBuzzer(),
        cycle_ns=config.cycle_ns,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the emulator and return the process exit status."""
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except UsageError as e:
        logger.error(f"{e}\n{parser.format_usage().strip()}")
        return 1

    config = config_from_args(args)
    logger.set_level(config.log_level)

    try:
        session = create_session(config, args.rom_path, headless=args.headless)
        session.run(args.max_cycles)
    except RomLoadError as e:
        logger.error(str(e))
        return 1
    except Chip8Error as e:
        logger.critical(f"{type(e).__name__}: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
