"""
Monochrome Framebuffer for CHIP-8 Emulator
==========================================

The CHIP-8 display is a 64 x 32 grid of on/off pixels. It is mutated only
by the clear-screen (00E0) and sprite-draw (DXYN) instructions; renderers
read it once per host frame and never write to it.

Sprites are up to 15 rows of 8 pixels, one byte per row, MSB leftmost.
Drawing XORs the sprite onto the grid and reports whether any lit pixel
was turned off (a collision).
"""

from dataclasses import dataclass
from typing import List, Optional


@dataclass
class DisplayState:
    """Display dimensions, kept separate so snapshots can validate them."""
    width: int = 64
    height: int = 32


class Display:
    """
    CHIP-8 framebuffer.

    Example:
        >>> display = Display()
        >>> display.draw_sprite(0, 0, bytes([0xF0]))
        False
        >>> display.get_pixel(3, 0)
        True
    """

    WIDTH = 64
    HEIGHT = 32

    def __init__(self, width: int = WIDTH, height: int = HEIGHT):
        """
        Initialize a cleared framebuffer.

        Args:
            width: Columns in pixels
            height: Rows in pixels
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"display size must be positive, got {width}x{height}")

        self._state = DisplayState(width=width, height=height)
        self._pixels = bytearray(width * height)

        # Track if display needs refresh (for external rendering)
        self._needs_refresh = True

    @property
    def width(self) -> int:
        return self._state.width

    @property
    def height(self) -> int:
        return self._state.height

    @property
    def needs_refresh(self) -> bool:
        """True if display content has changed since last pixel buffer read."""
        return self._needs_refresh

    @property
    def lit_count(self) -> int:
        """Number of pixels currently on."""
        return sum(self._pixels)

    def is_clear(self) -> bool:
        """True if no pixel is on."""
        return not any(self._pixels)

    def clear(self) -> None:
        """Turn every pixel off."""
        for i in range(len(self._pixels)):
            self._pixels[i] = 0
        self._needs_refresh = True

    def get_pixel(self, x: int, y: int) -> bool:
        """
        Read one pixel.

        Raises:
            IndexError: If (x, y) is outside the grid
        """
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"pixel ({x}, {y}) outside {self.width}x{self.height} display")
        return self._pixels[y * self.width + x] != 0

    def draw_sprite(self, x: int, y: int, rows: bytes, clip: bool = True) -> bool:
        """
        XOR a sprite onto the display.

        The start coordinate wraps around the display. Pixels that would
        fall past the right or bottom edge are dropped when clip is True,
        and wrap to the opposite edge otherwise.

        Args:
            x: Column of the sprite's left edge
            y: Row of the sprite's top edge
            rows: Sprite bytes, one per row, MSB is the leftmost pixel
            clip: Clip at the edges instead of wrapping

        Returns:
            True if any lit pixel was turned off
        """
        width = self.width
        height = self.height
        x0 = x % width
        y0 = y % height
        collision = False

        for row, bits in enumerate(rows):
            py = y0 + row
            if py >= height:
                if clip:
                    break
                py %= height

            for col in range(8):
                if not bits & (0x80 >> col):
                    continue
                px = x0 + col
                if px >= width:
                    if clip:
                        break
                    px %= width

                index = py * width + px
                if self._pixels[index]:
                    collision = True
                self._pixels[index] ^= 1

        self._needs_refresh = True
        return collision

    # =========================================================================
    # Renderer API (read-only)
    # =========================================================================

    def get_rows(self) -> List[List[bool]]:
        """Get the grid as a list of rows of booleans."""
        w = self.width
        return [
            [bool(p) for p in self._pixels[r * w:(r + 1) * w]]
            for r in range(self.height)
        ]

    def get_pixel_buffer(self) -> bytes:
        """
        Get display as pixel buffer.

        Returns:
            One byte per pixel, row-major, 255 for on and 0 for off.
        """
        self._needs_refresh = False
        return bytes(p * 255 for p in self._pixels)

    def get_text(self, on: str = "#", off: str = ".") -> str:
        """
        Get display as ASCII art, one line per pixel row.

        Example:
            >>> print(Display(8, 2).get_text())
            ........
            ........
        """
        return "\n".join(
            "".join(on if p else off for p in row)
            for row in self.get_rows()
        )

    def render_image(self, scale: int = 8) -> Optional[bytes]:
        """
        Render display as PNG image (requires PIL).

        Args:
            scale: Pixel scale factor (default 8)

        Returns:
            PNG image bytes, or None if PIL not available
        """
        try:
            from PIL import Image
            import io
        except ImportError:
            return None

        img = Image.new('L', (self.width, self.height), color=0)
        img.putdata([p * 255 for p in self._pixels])
        if scale > 1:
            img = img.resize(
                (self.width * scale, self.height * scale),
                resample=Image.NEAREST,
            )

        buffer = io.BytesIO()
        img.save(buffer, format='PNG')
        return buffer.getvalue()

    # =========================================================================
    # Snapshot Support
    # =========================================================================

    def get_snapshot_data(self) -> List[int]:
        """
        Get complete display state for snapshot.

        Format: [width, height, pixel bytes...]
        """
        result = [self.width, self.height]
        result.extend(self._pixels)
        return result

    def apply_snapshot_data(self, data: List[int], offset: int = 0) -> int:
        """
        Restore display state from snapshot.

        Args:
            data: Snapshot data bytes
            offset: Starting offset in data

        Returns:
            Number of bytes consumed
        """
        width = data[offset]
        height = data[offset + 1]
        if (width, height) != (self.width, self.height):
            raise ValueError(
                f"snapshot display is {width}x{height}, "
                f"emulator display is {self.width}x{self.height}"
            )

        pos = offset + 2
        size = width * height
        pixels = data[pos:pos + size]
        if len(pixels) != size:
            raise ValueError("truncated display image")
        for i in range(size):
            self._pixels[i] = 1 if pixels[i] else 0

        self._needs_refresh = True
        return 2 + size
