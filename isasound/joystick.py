"""USB gamepad reports mapped onto a PC game-port joystick state."""

from __future__ import annotations

from dataclasses import dataclass

DS4_REPORT_SIZE = 9
DS4_BUTTON_REPORT_ID = 1

CENTER = 127
AXIS_MAX = 255

XINPUT_GAMEPAD_DPAD_UP = 0x0001
XINPUT_GAMEPAD_DPAD_DOWN = 0x0002
XINPUT_GAMEPAD_DPAD_LEFT = 0x0004
XINPUT_GAMEPAD_DPAD_RIGHT = 0x0008

# Hat switch values 0..7 (N, NE, E, SE, S, SW, W, NW) as joystick 1 positions.
_DPAD_POSITIONS = {
    0: (CENTER, 0),
    1: (AXIS_MAX, 0),
    2: (AXIS_MAX, CENTER),
    3: (AXIS_MAX, AXIS_MAX),
    4: (CENTER, AXIS_MAX),
    5: (0, AXIS_MAX),
    6: (0, CENTER),
    7: (0, 0),
}
DPAD_RELEASED = 8

_SONY_DS4_IDS = frozenset(
    {
        (0x054C, 0x09CC),  # DualShock 4
        (0x054C, 0x05C4),  # DualShock 4
        (0x0F0D, 0x005E),  # Hori FC4
        (0x0F0D, 0x00EE),  # Hori PS4 Mini
        (0x1F4F, 0x1002),  # ASW GG xrd controller
    }
)
_PS_CLASSIC_IDS = frozenset({(0x054C, 0x0CDA)})


def _stick_axis(value: int) -> int:
    return ((value + 32768) >> 8) & 0xFF


def _inverted_stick_axis(value: int) -> int:
    return ((-value + 32767) >> 8) & 0xFF


@dataclass
class JoyState:
    """Two two-axis joysticks plus four buttons, as seen on the game port.

    Axes run 0..255; the upper nibble of ``button_mask`` holds the four
    buttons, active low.
    """

    joy1_x: int = CENTER
    joy1_y: int = CENTER
    joy2_x: int = CENTER
    joy2_y: int = CENTER
    button_mask: int = 0x0F

    def update_from_buttons(
        self,
        dpad: int,
        x: int,
        y: int,
        z: int,
        rz: int,
        b1: int,
        b2: int,
        b3: int,
        b4: int,
    ) -> None:
        """Apply a hat switch, two analog sticks and four buttons."""
        self.button_mask = (
            (int(not b1) << 4)
            | (int(not b2) << 5)
            | (int(not b3) << 6)
            | (int(not b4) << 7)
        )
        if dpad in _DPAD_POSITIONS:
            self.joy1_x, self.joy1_y = _DPAD_POSITIONS[dpad]
        elif dpad == DPAD_RELEASED:
            self.joy1_x = x & 0xFF
            self.joy1_y = y & 0xFF
        self.joy2_x = z & 0xFF
        self.joy2_y = rz & 0xFF

    def update_from_xinput(
        self,
        buttons: int,
        lx: int,
        ly: int,
        rx: int,
        ry: int,
        left_trigger: int,
        right_trigger: int,
    ) -> None:
        """Apply an XInput gamepad state (signed 16-bit sticks, 8-bit triggers)."""
        dpad = buttons & 0xF
        if not dpad:
            self.joy1_x = _stick_axis(lx)
            self.joy1_y = _inverted_stick_axis(ly)
        else:
            if dpad & XINPUT_GAMEPAD_DPAD_RIGHT:
                self.joy1_x = AXIS_MAX
            elif dpad & XINPUT_GAMEPAD_DPAD_LEFT:
                self.joy1_x = 0
            else:
                self.joy1_x = CENTER
            if dpad & XINPUT_GAMEPAD_DPAD_DOWN:
                self.joy1_y = AXIS_MAX
            elif dpad & XINPUT_GAMEPAD_DPAD_UP:
                self.joy1_y = 0
            else:
                self.joy1_y = CENTER
        # Triggers act as throttle and brake on joystick 1's vertical axis.
        if left_trigger:
            self.joy1_y = (CENTER + ((left_trigger & 0xFF) >> 1)) & 0xFF
        elif right_trigger:
            self.joy1_y = (CENTER - ((right_trigger & 0xFF) >> 1)) & 0xFF
        self.joy2_x = _stick_axis(rx)
        self.joy2_y = _inverted_stick_axis(ry)
        self.button_mask = (~((buttons & 0xFFFF) >> 12) & 0xF) << 4


@dataclass(frozen=True)
class Ds4Report:
    """The leading fields of a DualShock 4 input report (after the report id)."""

    x: int
    y: int
    z: int
    rz: int
    dpad: int
    square: bool
    cross: bool
    circle: bool
    triangle: bool
    l1: bool
    r1: bool
    l2: bool
    r2: bool
    share: bool
    option: bool
    l3: bool
    r3: bool
    ps: bool
    tpad: bool
    counter: int
    l2_trigger: int
    r2_trigger: int

    @classmethod
    def from_bytes(cls, data: bytes) -> Ds4Report:
        """Decode the first nine bytes of a report body."""
        if len(data) < DS4_REPORT_SIZE:
            raise ValueError(
                f"DS4 report needs {DS4_REPORT_SIZE} bytes, got {len(data)}"
            )
        x, y, z, rz, face, shoulder, system, l2_trigger, r2_trigger = bytes(
            data[:DS4_REPORT_SIZE]
        )
        return cls(
            x=x,
            y=y,
            z=z,
            rz=rz,
            dpad=face & 0x0F,
            square=bool(face & 0x10),
            cross=bool(face & 0x20),
            circle=bool(face & 0x40),
            triangle=bool(face & 0x80),
            l1=bool(shoulder & 0x01),
            r1=bool(shoulder & 0x02),
            l2=bool(shoulder & 0x04),
            r2=bool(shoulder & 0x08),
            share=bool(shoulder & 0x10),
            option=bool(shoulder & 0x20),
            l3=bool(shoulder & 0x40),
            r3=bool(shoulder & 0x80),
            ps=bool(system & 0x01),
            tpad=bool(system & 0x02),
            counter=system >> 2,
            l2_trigger=l2_trigger,
            r2_trigger=r2_trigger,
        )


def is_sony_ds4(vid: int, pid: int) -> bool:
    """True for DualShock 4 controllers and compatibles."""
    return (vid, pid) in _SONY_DS4_IDS


def is_ps_classic(vid: int, pid: int) -> bool:
    """True for the PlayStation Classic USB controller."""
    return (vid, pid) in _PS_CLASSIC_IDS


def process_sony_ds4(state: JoyState, report: bytes) -> bool:
    """Apply a DS4 report (report id first) to ``state``.

    Only report id 1 carries the buttons; returns whether the state changed.
    """
    if not report:
        raise ValueError("empty DS4 report")
    if report[0] != DS4_BUTTON_REPORT_ID:
        return False
    ds4 = Ds4Report.from_bytes(report[1:])
    state.update_from_buttons(
        ds4.dpad,
        ds4.x,
        ds4.y,
        ds4.z,
        ds4.rz,
        ds4.cross,
        ds4.circle,
        ds4.square,
        ds4.triangle,
    )
    return True