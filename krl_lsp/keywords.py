"""Static KRL reference data: keywords, types, system variables and
library functions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

STRUCTURE_KEYWORDS = (
    'GLOBAL', 'DEF', 'DEFFCT', 'END', 'ENDFCT', 'RETURN', 'DEFDAT',
    'ENDDAT', 'PUBLIC', 'CONST',
)
CONTROL_KEYWORDS = (
    'IF', 'THEN', 'ELSE', 'ENDIF', 'FOR', 'TO', 'STEP', 'ENDFOR', 'WHILE',
    'ENDWHILE', 'LOOP', 'ENDLOOP', 'REPEAT', 'UNTIL', 'SWITCH', 'CASE',
    'DEFAULT', 'ENDSWITCH',
)
OPERATOR_KEYWORDS = (
    'AND', 'OR', 'NOT', 'EXOR', 'MOD', 'TRUE', 'FALSE', 'B_AND', 'B_OR',
    'B_NOT', 'B_EXOR', 'B_XOR', 'B_NAND', 'B_NOR', 'B_XNOR',
)
PRIMITIVE_TYPES = (
    'INT', 'REAL', 'BOOL', 'CHAR', 'STRING', 'FRAME', 'POS', 'E6POS',
    'AXIS', 'E6AXIS', 'LOAD', 'SIGNAL',
)
TYPE_KEYWORDS = ('DECL', 'STRUC', 'ENUM') + PRIMITIVE_TYPES
MOTION_KEYWORDS = (
    'PTP', 'LIN', 'CIRC', 'SPTP', 'SLIN', 'SCIRC', 'PTP_REL', 'LIN_REL',
    'PTP_SPLINE', 'LIN_SPLINE', 'CP_SPLINE', 'SPLINE', 'ENDSPLINE',
    'C_PTP', 'C_LIN', 'C_VEL', 'C_DIS', 'C_ORI', 'C_SPL',
)
SPLINE_KEYWORDS = (
    'SVEL', 'SVEL_JOINT', 'SACC', 'SACC_JOINT', 'STOOL', 'STOOL2', 'SBASE',
    'SLOAD', 'SIPO_MODE', 'SAPO', 'SAPO_PTP', 'SAPO_LIN', 'SGEAR_JERK',
    'STIME', 'SCIRCTYPE', 'SORI', 'SORI_EX', 'SJERK', 'USE_CM_PRO_VALUES',
)
FLOW_KEYWORDS = (
    'INTERRUPT', 'TRIGGER', 'BRAKE', 'RESUME', 'HALT', 'STOP', 'EXIT',
    'GOTO', 'CONTINUE', 'BREAK', 'WAIT', 'SEC', 'DELAY', 'TIMEOUT',
    'IR_STOPM', 'IR_STOPMESS', 'WHEN', 'DO', 'DISTANCE', 'PRIO', 'ON',
    'OFF', 'WITH', 'IN', 'OUT', 'PATH', 'ENABLE', 'DISABLE',
)
BUILTIN_FUNCTIONS = (
    'BAS', 'BAS_COMMAND', 'EXT', 'DMY', 'SWRITE', 'SREAD', 'CWRITE',
    'CREAD', 'CAST_TO', 'CAST_FROM', 'ON_ERROR_PROCEED', 'ERR_CLEAR',
    'ERR_RAISE', 'MBX_REC', 'VARSTATE', 'PULSE', 'MSGNOTIFY', 'MSGQUIT',
    'MSGDIALOG', 'MSGCONFIRM', 'SET_KRLMSG', 'EXISTS_KRLMSG',
    'CLEAR_KRLMSG', 'ABS', 'SIN', 'COS', 'TAN', 'ASIN', 'ACOS', 'ATAN2',
    'SQRT', 'MAX', 'MIN', 'ROUND', 'INVERSE', 'FORWARD', 'STRLEN',
    'STRCLEAR', 'STRCOMP', 'STRCOPY', 'STRADD', 'STRFIND', 'STRDECLLEN',
    'SET_CD_PARAMS', 'INIT_IO', 'INI', 'INIT',
)
MISC_KEYWORDS = (
    'BASE', 'TOOL', 'LOAD_DATA', 'NULLFRAME', 'PTP_PARAMS', 'CP_PARAMS',
    'APO', 'VEL', 'ACC', 'OV_PRO', 'T1', 'T2', 'AUT', 'MANUAL', 'TCP',
    'M_PI',
)
# Frame and axis component names, valid inside aggregates {X 1, Y 2}
COORDINATE_KEYWORDS = (
    'X', 'Y', 'Z', 'A', 'B', 'C', 'S', 'T', 'A1', 'A2', 'A3', 'A4', 'A5',
    'A6', 'E1', 'E2', 'E3', 'E4', 'E5', 'E6',
)

# Keywords the formatter upper-cases. Coordinates and library names are
# left alone since they commonly collide with user identifiers.
FORMAT_KEYWORDS = frozenset(
    STRUCTURE_KEYWORDS + CONTROL_KEYWORDS + OPERATOR_KEYWORDS
    + TYPE_KEYWORDS + MOTION_KEYWORDS + (
        'INTERRUPT', 'TRIGGER', 'BRAKE', 'RESUME', 'HALT', 'EXIT', 'GOTO',
        'CONTINUE', 'WAIT', 'SEC', 'DELAY', 'TIMEOUT', 'WHEN', 'DISTANCE',
        'PRIO', 'BAS',
    )
)


@dataclass
class LibraryFunction:
    name: str
    params: str
    return_type: str
    description: str
    module: str

    @property
    def param_names(self) -> list[str]:
        return [p.strip() for p in self.params.split(',') if p.strip()]


# Functions of the community KRL "wonderlibrary"
LIBRARY_FUNCTIONS = (
    LibraryFunction(
        'fopen', 'FILENAME:IN, MODE:IN, HANDLE:OUT', 'BOOL',
        'Open file for reading/writing. MODE: "r"=read, "w"=write, '
        '"a"=append. Returns TRUE on success.', 'files',
    ),
    LibraryFunction(
        'fclose', 'HANDLE:IN', 'BOOL',
        'Close file by handle. Returns TRUE on success.', 'files',
    ),
    LibraryFunction(
        'feof', 'HANDLE:IN, bEOF:OUT', 'BOOL',
        'Check if end of file reached. bEOF is set to TRUE at EOF.', 'files',
    ),
    LibraryFunction(
        'fgets',
        'HANDLE:IN, buffer:OUT, bufferSize:IN, readCharNum:OUT, SEPARATOR:IN',
        'BOOL', 'Read line from file up to separator or newline.', 'files',
    ),
    LibraryFunction(
        'LOG', 'STRINGA:IN', 'VOID',
        'Log message to file in C:/KRC/ROBOTER/UserFiles/.', 'files',
    ),
    LibraryFunction(
        'LOGERROR', 'STRINGA:IN', 'VOID',
        'Log error message (requires fileslib_LOG_LEVEL >= LOG_ERROR).',
        'files',
    ),
    LibraryFunction(
        'DISTANCE_POINT_POINT', 'p1:IN, p2:IN', 'REAL',
        'Calculate 3D Euclidean distance between two E6POS points.',
        'geometry',
    ),
    LibraryFunction(
        'BOOL_CHOOSEI', 'CONDITION:IN, TRUEVALUE:IN, FALSEVALUE:IN', 'INT',
        'Ternary operator for INT: returns TRUEVALUE if CONDITION, '
        'else FALSEVALUE.', 'logical',
    ),
    LibraryFunction(
        'BOOL_CHOOSEF', 'CONDITION:IN, TRUEVALUE:IN, FALSEVALUE:IN', 'REAL',
        'Ternary operator for REAL: returns TRUEVALUE if CONDITION, '
        'else FALSEVALUE.', 'logical',
    ),
    LibraryFunction(
        'IN_RANGE', 'value:IN, value_min:IN, value_max:IN', 'BOOL',
        'Check if value is within range [min, max] (inclusive).', 'math',
    ),
    LibraryFunction(
        'IN_TOLERANCE', 'value:IN, value_ref:IN, tolerance:IN', 'BOOL',
        'Check if value is near reference within tolerance.', 'math',
    ),
    LibraryFunction(
        'STOF', 'STRING:IN', 'REAL', 'Convert string to REAL.', 'string',
    ),
    LibraryFunction(
        'STOI', 'STRING:IN', 'INT', 'Convert string to INT.', 'string',
    ),
    LibraryFunction(
        'FTOS', 'VALUE:IN', 'CHAR[128]', 'Convert REAL to string.', 'string',
    ),
    LibraryFunction(
        'ITOS', 'VALUE:IN', 'CHAR[128]', 'Convert INT to string.', 'string',
    ),
    LibraryFunction(
        'MID', 'STRING:IN, OFFSET:IN, LENGTH:IN, OUTPUT_STRING:OUT', 'VOID',
        'Extract substring from STRING starting at OFFSET with given '
        'LENGTH.', 'string',
    ),
)
LIBRARY_BY_NAME = {f.name.upper(): f for f in LIBRARY_FUNCTIONS}

CODE_KEYWORDS = frozenset(
    kw.upper() for kw in (
        STRUCTURE_KEYWORDS + CONTROL_KEYWORDS + OPERATOR_KEYWORDS
        + TYPE_KEYWORDS + MOTION_KEYWORDS + SPLINE_KEYWORDS + FLOW_KEYWORDS
        + BUILTIN_FUNCTIONS + MISC_KEYWORDS + COORDINATE_KEYWORDS
        + tuple(LIBRARY_BY_NAME)
    )
)


def is_keyword(word: str) -> bool:
    return word.upper() in CODE_KEYWORDS


# A representative subset of the controller's predefined variables
SYSTEM_VARIABLES = (
    '$ACC', '$ACC_AXIS', '$ADVANCE', '$APO', '$AXIS_ACT', '$BASE',
    '$BWDSTART', '$DATE', '$DRIVES_OFF', '$DRIVES_ON', '$IN', '$IPO_MODE',
    '$LOAD', '$MODE_OP', '$NULLFRAME', '$OUT', '$OV_PRO', '$POS_ACT',
    '$PRO_IP', '$PRO_STATE0', '$TIMER', '$TIMER_FLAG', '$TIMER_STOP',
    '$TOOL', '$VEL', '$VEL_AXIS', '$VEL_PTP', '$WORLD',
)

SYSTEM_VARIABLE_DOCS = {
    '$TOOL': 'Current tool frame (FRAME). Set before any motion.',
    '$BASE': 'Current base frame (FRAME). Set before any motion.',
    '$VEL': 'Cartesian path velocity; $VEL.CP in m/s.',
    '$VEL_PTP': 'PTP velocity override in percent of maximum.',
    '$OV_PRO': 'Program override in percent.',
    '$IN': 'Digital input array, $IN[1]..$IN[4096].',
    '$OUT': 'Digital output array, $OUT[1]..$OUT[4096].',
    '$POS_ACT': 'Current Cartesian robot position (E6POS).',
    '$AXIS_ACT': 'Current axis position (E6AXIS).',
    '$ADVANCE': 'Number of motion instructions in advance run (0..5).',
    '$TIMER': 'Timer array in milliseconds, $TIMER[1]..$TIMER[64].',
}


@dataclass
class KeywordDoc:
    description: str
    syntax: Optional[str] = None
    example: Optional[str] = None


KEYWORD_DOCS = {
    'PTP': KeywordDoc(
        'Point-to-Point movement. Moves the robot to the target point via '
        'the fastest path.',
        'PTP TargetPoint [C_DIS|C_PTP]', 'PTP P1 Vel=100% PDAT1',
    ),
    'LIN': KeywordDoc(
        'Linear movement. Moves the robot in a straight line.',
        'LIN TargetPoint [C_DIS|C_VEL]', 'LIN P2 Vel=2 m/s CPDAT1',
    ),
    'CIRC': KeywordDoc(
        'Circular movement via auxiliary point.',
        'CIRC AuxPoint, TargetPoint [C_DIS]', 'CIRC PAux, PEnd',
    ),
    'IF': KeywordDoc(
        'Conditional execution block.',
        'IF Condition THEN ... [ELSE ...] ENDIF',
        'IF $IN[1] THEN\n  PTP HOME\nENDIF',
    ),
    'FOR': KeywordDoc(
        'Count-controlled loop.', 'FOR Var = Start TO End [STEP Val]',
        'FOR I=1 TO 10 STEP 2\n ... \nENDFOR',
    ),
    'WHILE': KeywordDoc(
        'Pre-test loop, repeated while the condition is TRUE.',
        'WHILE Condition ... ENDWHILE',
    ),
    'LOOP': KeywordDoc('Endless loop, left with EXIT.', 'LOOP ... ENDLOOP'),
    'REPEAT': KeywordDoc(
        'Post-test loop, repeated until the condition is TRUE.',
        'REPEAT ... UNTIL Condition',
    ),
    'SWITCH': KeywordDoc(
        'Multi-way branch on an INT, CHAR or ENUM value.',
        'SWITCH Var CASE 1 ... DEFAULT ... ENDSWITCH',
    ),
    'WAIT': KeywordDoc(
        'Waits for a time or condition.', 'WAIT SEC 0.5\nWAIT FOR $IN[1]',
    ),
    'HALT': KeywordDoc('Stops program execution safely.'),
    'DECL': KeywordDoc(
        'Declares a variable.', 'DECL Type Name[, Name...]',
        'DECL INT counter',
    ),
    'GLOBAL': KeywordDoc(
        'Makes a declaration or subroutine visible outside its file.',
    ),
    'BAS': KeywordDoc(
        'Basic Setup function (Initialize speeds, tools).',
        'BAS(#INITMOV, 0)',
    ),
    'INTERRUPT': KeywordDoc(
        'Declares or controls an interrupt.',
        'INTERRUPT DECL Prio WHEN Event DO Subroutine',
    ),
    'TRIGGER': KeywordDoc(
        'Path-related switching action.',
        'TRIGGER WHEN DISTANCE=0 DELAY=0 DO Action',
    ),
}
