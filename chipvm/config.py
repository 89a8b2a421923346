"""Session configuration."""

from chex import dataclass

from chipvm.constants import SLOW_CYCLE_NS, MED_CYCLE_NS, FAST_CYCLE_NS

SPEEDS = {
    "slow": SLOW_CYCLE_NS,
    "med": MED_CYCLE_NS,
    "fast": FAST_CYCLE_NS,
}

DEFAULT_SPEED = "med"


@dataclass(frozen=True)
class EmulatorConfig:
    """Everything a session needs besides the ROM and its collaborators.

    Attributes:
        speed: One of ``SPEEDS``; selects the per-cycle delay.
        timer_mode: "inline" (catch-up in the driver loop) or "threaded".
        sprite_wrap: Wrap sprite pixels at the screen edges instead of
            treating off-screen pixels as fatal.
        trace: Log every executed instruction at DEBUG level.
        dump_registers: Log the register file after every instruction.
        render_scale: Window pixels per CHIP-8 pixel.
        color_scheme: Name understood by ``chipvm.rendering.create_color_scheme``.
        log_level: Minimum console log level.
        seed: Seed for the CXNN random number generator.
    """
    speed: str = DEFAULT_SPEED
    timer_mode: str = "inline"
    sprite_wrap: bool = True
    trace: bool = False
    dump_registers: bool = False
    render_scale: int = 16
    color_scheme: str = "classic"
    log_level: str = "INFO"
    seed: int = 0

    @property
    def cycle_ns(self) -> int:
        """Delay between driver iterations, in nanoseconds."""
        if self.speed not in SPEEDS:
            raise ValueError(f"Unknown speed '{self.speed}'. Available: {list(SPEEDS)}")
        return SPEEDS[self.speed]
