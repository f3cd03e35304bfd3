"""SVG path data grammar: parse, serialize, relative→absolute, matrix application.

A path is a list of PathCommand. Operand layout follows the SVG path grammar:

    M/L/T  x y                     H  x             V  y
    Q/S    x1 y1 x y               C  x1 y1 x2 y2 x y
    A      rx ry rotation large-arc sweep x y       Z  (none)
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from svgnorm.errors import GrammarError
from svgnorm.svg.transform import AffineMatrix
from svgnorm.utils.numbers import NUMBER_RE, format_number

_NUMBER_AT = re.compile(NUMBER_RE.pattern)
_SEPARATORS = " \t\r\n\f,"


class Opcode(enum.Enum):
    MOVE_TO = "M"
    LINE_TO = "L"
    H_LINE_TO = "H"
    V_LINE_TO = "V"
    CUBIC_TO = "C"
    SMOOTH_CUBIC_TO = "S"
    QUAD_TO = "Q"
    SMOOTH_QUAD_TO = "T"
    ARC_TO = "A"
    CLOSE = "Z"

    @property
    def arity(self) -> int:
        return _ARITY[self]


_ARITY = {
    Opcode.MOVE_TO: 2,
    Opcode.LINE_TO: 2,
    Opcode.H_LINE_TO: 1,
    Opcode.V_LINE_TO: 1,
    Opcode.CUBIC_TO: 6,
    Opcode.SMOOTH_CUBIC_TO: 4,
    Opcode.QUAD_TO: 4,
    Opcode.SMOOTH_QUAD_TO: 2,
    Opcode.ARC_TO: 7,
    Opcode.CLOSE: 0,
}

_BY_LETTER = {op.value: op for op in Opcode}

# Arc operands 3 and 4 are the large-arc and sweep flags.
ARC_FLAG_INDEXES = (3, 4)


@dataclass(frozen=True)
class PathCommand:
    opcode: Opcode
    is_relative: bool = False
    operands: tuple[float, ...] = ()

    def __post_init__(self) -> None:
        if len(self.operands) != self.opcode.arity:
            raise GrammarError(
                f"{self.opcode.value} takes {self.opcode.arity} operands, got {len(self.operands)}"
            )

    @property
    def letter(self) -> str:
        return self.opcode.value.lower() if self.is_relative else self.opcode.value

    def __str__(self) -> str:
        return self.letter + _format_operands(self)


# --- Parsing ---


class _Scanner:
    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def skip_separators(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos] in _SEPARATORS:
            self.pos += 1

    def at_end(self) -> bool:
        self.skip_separators()
        return self.pos >= len(self.text)

    def peek(self) -> str:
        return self.text[self.pos]

    def read_number(self) -> float | None:
        self.skip_separators()
        match = _NUMBER_AT.match(self.text, self.pos)
        if match is None:
            return None
        self.pos = match.end()
        return float(match.group(0))

    def read_flag(self) -> float | None:
        self.skip_separators()
        if self.pos < len(self.text) and self.text[self.pos] in "01":
            self.pos += 1
            return float(self.text[self.pos - 1])
        return None


def _read_operands(scanner: _Scanner, opcode: Opcode, letter: str) -> tuple[float, ...]:
    operands: list[float] = []
    for index in range(opcode.arity):
        if opcode is Opcode.ARC_TO and index in ARC_FLAG_INDEXES:
            value = scanner.read_flag()
        else:
            value = scanner.read_number()
        if value is None:
            raise GrammarError(
                f"Command {letter} expects {opcode.arity} operands, "
                f"found {len(operands)} at offset {scanner.pos}"
            )
        operands.append(value)
    return tuple(operands)


def parse_path(text: str | None) -> list[PathCommand]:
    """Parse path data into commands, expanding implicit command repetition."""
    commands: list[PathCommand] = []
    if not text:
        return commands

    scanner = _Scanner(text)
    opcode: Opcode | None = None
    relative = True

    while not scanner.at_end():
        char = scanner.peek()
        if char.isalpha():
            opcode = _BY_LETTER.get(char.upper())
            if opcode is None:
                raise GrammarError(f"Unknown path command {char!r} at offset {scanner.pos}")
            relative = char.islower()
            scanner.pos += 1
            if opcode is Opcode.CLOSE:
                commands.append(PathCommand(opcode, relative))
                continue
        elif opcode is None:
            # Leading coordinates with no command start a relative moveto.
            opcode, relative = Opcode.MOVE_TO, True
        elif opcode is Opcode.CLOSE:
            raise GrammarError(f"Coordinates after close-path at offset {scanner.pos}")
        elif opcode is Opcode.MOVE_TO:
            # Extra coordinate pairs after a moveto are implicit linetos.
            opcode = Opcode.LINE_TO

        letter = opcode.value.lower() if relative else opcode.value
        commands.append(PathCommand(opcode, relative, _read_operands(scanner, opcode, letter)))

    return commands


# --- Serialization ---


def _format_operands(command: PathCommand) -> str:
    values = [format_number(v) for v in command.operands]
    if not values:
        return ""
    if command.opcode is Opcode.ARC_TO:
        rx, ry, rotation, large_arc, sweep, x, y = values
        return f"{rx},{ry} {rotation} {large_arc} {sweep} {x},{y}"
    if len(values) == 1:
        return values[0]
    return " ".join(f"{values[i]},{values[i + 1]}" for i in range(0, len(values), 2))


def serialize_path(commands: list[PathCommand]) -> str:
    return " ".join(str(command) for command in commands)


# --- Coordinate space conversion ---


def _advance(
    command: PathCommand,
    point: tuple[float, float],
    start: tuple[float, float],
) -> tuple[PathCommand, tuple[float, float], tuple[float, float]]:
    """Make one command absolute and move the current point past it."""
    x, y = point
    opcode = command.opcode
    operands = list(command.operands)

    if command.is_relative:
        if opcode is Opcode.H_LINE_TO:
            operands[0] += x
        elif opcode is Opcode.V_LINE_TO:
            operands[0] += y
        elif opcode is Opcode.ARC_TO:
            operands[5] += x
            operands[6] += y
        elif opcode is not Opcode.CLOSE:
            for i in range(0, len(operands), 2):
                operands[i] += x
                operands[i + 1] += y
        command = PathCommand(opcode, False, tuple(operands))

    if opcode is Opcode.CLOSE:
        point = start
    elif opcode is Opcode.H_LINE_TO:
        point = (operands[0], y)
    elif opcode is Opcode.V_LINE_TO:
        point = (x, operands[0])
    else:
        point = (operands[-2], operands[-1])

    if opcode is Opcode.MOVE_TO:
        start = point
    return command, point, start


def to_absolute(commands: list[PathCommand]) -> list[PathCommand]:
    """Rewrite relative commands as absolute ones. Idempotent."""
    result: list[PathCommand] = []
    point = (0.0, 0.0)
    start = (0.0, 0.0)
    for command in commands:
        command, point, start = _advance(command, point, start)
        result.append(command)
    return result


def transform_path(commands: list[PathCommand], matrix: AffineMatrix) -> list[PathCommand]:
    """Apply ``matrix`` to every coordinate pair of the (absolutized) path.

    Arc radii, x-axis rotation and flags are not re-derived, so arcs are only
    exact under translation.
    """
    result: list[PathCommand] = []
    point = (0.0, 0.0)
    start = (0.0, 0.0)

    for command in to_absolute(commands):
        opcode = command.opcode
        operands = list(command.operands)

        if opcode in (Opcode.H_LINE_TO, Opcode.V_LINE_TO) and not matrix.is_axis_aligned:
            # A rotated or skewed axis line needs both coordinates.
            x, y = point
            if opcode is Opcode.H_LINE_TO:
                x = operands[0]
            else:
                y = operands[0]
            transformed = PathCommand(Opcode.LINE_TO, False, matrix.transform_point(x, y))
        elif opcode is Opcode.H_LINE_TO:
            transformed = PathCommand(opcode, False, (matrix.a * operands[0] + matrix.e,))
        elif opcode is Opcode.V_LINE_TO:
            transformed = PathCommand(opcode, False, (matrix.d * operands[0] + matrix.f,))
        elif opcode is Opcode.ARC_TO:
            operands[5], operands[6] = matrix.transform_point(operands[5], operands[6])
            transformed = PathCommand(opcode, False, tuple(operands))
        elif opcode is Opcode.CLOSE:
            transformed = command
        else:
            pairs = np.array(operands, dtype=np.float64).reshape(-1, 2)
            flat = matrix.transform_points(pairs).ravel()
            transformed = PathCommand(opcode, False, tuple(float(v) for v in flat))

        _, point, start = _advance(command, point, start)
        result.append(transformed)

    return result


# --- Point lists (polygon / polyline) ---


def parse_points(text: str | None) -> NDArray[np.float64]:
    """Parse a ``points`` attribute into an Nx2 array."""
    if not text or not text.strip():
        return np.empty((0, 2))
    leftover = NUMBER_RE.sub("", text).strip(_SEPARATORS)
    if leftover:
        raise GrammarError(f"Unreadable point list near {leftover[:20]!r}")
    values = [float(v) for v in NUMBER_RE.findall(text)]
    if len(values) % 2:
        raise GrammarError(f"Point list has an odd number of coordinates ({len(values)})")
    return np.array(values, dtype=np.float64).reshape(-1, 2)


def serialize_points(points: NDArray[np.float64]) -> str:
    return " ".join(f"{format_number(float(x))},{format_number(float(y))}" for x, y in points)
