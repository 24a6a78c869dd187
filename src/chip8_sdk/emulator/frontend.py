"""
pygame Host for the CHIP-8 Emulator
===================================

Window, keyboard and audio collaborators around an Emulator:
- the framebuffer is scaled into a window once per frame
- host keys are mapped to the keypad through KEY_MAP
- a square-wave tone plays while the sound timer is nonzero

The loop runs at 60 frames per second and calls Emulator.run_frame() once
per frame, so the instruction rate comes from EmulatorConfig.frequency and
the timers tick at 60 Hz.
"""

import logging
from array import array
from typing import Optional

import pygame

from .breakpoints import BreakEvent, BreakReason
from .emulator import Emulator
from .keyboard import KEY_MAP

logger = logging.getLogger(__name__)

ERROR_POLICIES = ("halt", "skip")


class Frontend:
    """
    Interactive window for an Emulator.

    Args:
        emulator: Emulator with a program loaded
        scale: Window pixels per CHIP-8 pixel
        on_error: "halt" stops at the first execution error, "skip" logs it
            and steps over the faulting instruction
        title: Window caption

    Example:
        >>> emu = Emulator()
        >>> emu.load_rom("pong.ch8")
        >>> Frontend(emu, scale=12).run()
    """

    FPS = 60
    TONE_HZ = 440
    SAMPLE_RATE = 22050
    AMPLITUDE = 4096
    FOREGROUND = (255, 255, 255)
    BACKGROUND = (0, 0, 0)

    def __init__(
        self,
        emulator: Emulator,
        scale: int = 10,
        on_error: str = "halt",
        title: str = "CHIP-8",
    ):
        if on_error not in ERROR_POLICIES:
            raise ValueError(
                f"Unknown error policy '{on_error}'. Valid: {', '.join(ERROR_POLICIES)}"
            )
        if scale < 1:
            raise ValueError(f"scale must be at least 1, got {scale}")
        self.emulator = emulator
        self.scale = scale
        self.on_error = on_error
        self.title = title

        self._screen: Optional[pygame.Surface] = None
        self._tone: Optional[pygame.mixer.Sound] = None
        self._running = False

    # =========================================================================
    # Setup
    # =========================================================================

    def _open(self) -> None:
        pygame.init()
        size = (self.emulator.width * self.scale, self.emulator.height * self.scale)
        self._screen = pygame.display.set_mode(size)
        pygame.display.set_caption(self.title)
        self._tone = self._make_tone()
        self.emulator.timers.on_sound_change = self._set_tone
        logger.info(f"Frontend started ({size[0]}x{size[1]})")

    def _close(self) -> None:
        self.emulator.timers.on_sound_change = None
        if self._tone is not None:
            self._tone.stop()
        pygame.quit()
        logger.info("Frontend stopped")

    def _make_tone(self) -> Optional[pygame.mixer.Sound]:
        """One period of a square wave, looped while the sound timer runs."""
        try:
            pygame.mixer.init(frequency=self.SAMPLE_RATE, size=-16, channels=1)
        except pygame.error as e:
            logger.warning(f"No audio device, running silent: {e}")
            return None

        rate, _, channels = pygame.mixer.get_init()
        period = max(2, rate // self.TONE_HZ)
        samples = array("h")
        for n in range(period):
            level = self.AMPLITUDE if n < period // 2 else -self.AMPLITUDE
            samples.extend([level] * channels)
        return pygame.mixer.Sound(buffer=samples.tobytes())

    def _set_tone(self, active: bool) -> None:
        if self._tone is None:
            return
        if active:
            self._tone.play(loops=-1)
        else:
            self._tone.stop()

    # =========================================================================
    # Main Loop
    # =========================================================================

    def handle_event(self, event: pygame.event.Event) -> None:
        """Apply one pygame event to the keypad or the loop state."""
        if event.type == pygame.QUIT:
            self._running = False
        elif event.type in (pygame.KEYDOWN, pygame.KEYUP):
            if event.key == pygame.K_ESCAPE:
                self._running = False
                return
            key = KEY_MAP.get(pygame.key.name(event.key).upper())
            if key is not None:
                self.emulator.keypad.set_key(key, event.type == pygame.KEYDOWN)

    def draw(self) -> None:
        """Blit the framebuffer to the window."""
        width = self.emulator.width
        buffer = self.emulator.display.get_pixel_buffer()
        self._screen.fill(self.BACKGROUND)
        for index, level in enumerate(buffer):
            if level:
                y, x = divmod(index, width)
                rect = (x * self.scale, y * self.scale, self.scale, self.scale)
                self._screen.fill(self.FOREGROUND, rect)
        pygame.display.flip()

    def run(self) -> Optional[BreakEvent]:
        """
        Run until the window is closed or execution halts.

        Returns:
            The error event that halted execution, or None when the user
            closed the window
        """
        self._open()
        clock = pygame.time.Clock()
        self._running = True
        halted: Optional[BreakEvent] = None
        try:
            while self._running:
                for event in pygame.event.get():
                    self.handle_event(event)

                result = self.emulator.run_frame()
                if result.reason is BreakReason.ERROR:
                    if self.on_error == "skip":
                        logger.warning(f"{result.error}; skipping instruction")
                        self.emulator.skip_instruction()
                    else:
                        logger.warning(f"Halted: {result.error}")
                        halted = result
                        self._running = False

                if self.emulator.display.needs_refresh:
                    self.draw()
                clock.tick(self.FPS)
        finally:
            self._close()
        return halted
