# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Contract class models, decoding and compression.

Starknet knows two generations of contract classes:

- **Sierra** classes (:class:`FlattenedSierraClass`), produced by Cairo 1 and
  later, carrying a ``sierra_program`` (a list of field elements) and a
  ``contract_class_version``.
- **Legacy** classes (:class:`LegacyContractClass`), produced by Cairo 0,
  carrying a ``program`` JSON object.

The wire format has no discriminant tag, so :func:`decode_deployed_class` looks at
which fields are present exactly once and returns one of the two types. Everything
downstream dispatches on the Python type.

Before a class is declared its program is compressed: serialized to JSON,
gzip-compressed with a fixed timestamp (identical input gives byte-identical
output) at the level given by :class:`CompressionConfig`, and base64-encoded when
rendered with ``to_json()``. ABI and entry points are copied unchanged.

Examples:
    Declaring a compiled Cairo 1 class::

        with open("contract.sierra.json") as f:
            contract_class = decode_deployed_class(f.read())

        compressed = compress_sierra_class(contract_class, CompressionConfig(level=9))
        payload = compressed.to_json()

    Hashing a Cairo 0 class::

        legacy = decode_deployed_class(artifact_bytes)
        class_hash = compute_legacy_class_hash(legacy)
"""

from __future__ import annotations

import base64
import copy
import gzip
import json
import unittest
import unittest.mock
import zlib
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from .errors import ClassDecodingError, CompressionError, CompressionErrorKind
from .field import FieldElement
from .pedersen import compute_hash_on_elements
from .utils import cairo_short_string_to_felt, starknet_keccak

ENTRY_POINT_TYPES = ("EXTERNAL", "L1_HANDLER", "CONSTRUCTOR")

# Version of the legacy class hash layout.
LEGACY_API_VERSION = FieldElement.ZERO


@dataclass(frozen=True)
class CompressionConfig:
    """Settings for program compression.

    Attributes:
        level: gzip compression level, 0 (none) to 9 (best, the default).
    """

    level: int = 9

    def __post_init__(self):
        if not 0 <= self.level <= 9:
            raise ValueError(f"compression level must be in [0, 9], got {self.level}")


@dataclass(frozen=True)
class SierraEntryPoint:
    selector: FieldElement
    function_idx: int

    def to_json(self) -> Dict[str, Any]:
        return {"selector": self.selector.hex(), "function_idx": self.function_idx}


@dataclass(frozen=True)
class LegacyEntryPoint:
    selector: FieldElement
    offset: FieldElement

    def to_json(self) -> Dict[str, Any]:
        return {"selector": self.selector.hex(), "offset": self.offset.hex()}


@dataclass(frozen=True)
class FlattenedSierraClass:
    """A Sierra class as emitted by the compiler, program flattened to felts."""

    sierra_program: Tuple[FieldElement, ...]
    contract_class_version: str
    entry_points_by_type: Dict[str, List[SierraEntryPoint]]
    abi: str


@dataclass(frozen=True)
class LegacyContractClass:
    """A Cairo 0 class: raw program JSON, entry points and optional ABI."""

    program: Dict[str, Any]
    entry_points_by_type: Dict[str, List[LegacyEntryPoint]]
    abi: Optional[List[Dict[str, Any]]] = None


DeployedClass = Union[FlattenedSierraClass, LegacyContractClass]


def _entry_points_json(entry_points: Dict[str, List[Any]]) -> Dict[str, Any]:
    return {
        kind: [entry_point.to_json() for entry_point in points]
        for kind, points in entry_points.items()
    }


@dataclass(frozen=True)
class CompressedSierraClass:
    sierra_program: bytes
    contract_class_version: str
    entry_points_by_type: Dict[str, List[SierraEntryPoint]]
    abi: str

    def to_json(self) -> Dict[str, Any]:
        return {
            "sierra_program": base64.b64encode(self.sierra_program).decode("ascii"),
            "contract_class_version": self.contract_class_version,
            "entry_points_by_type": _entry_points_json(self.entry_points_by_type),
            "abi": self.abi,
        }


@dataclass(frozen=True)
class CompressedLegacyContractClass:
    program: bytes
    entry_points_by_type: Dict[str, List[LegacyEntryPoint]]
    abi: Optional[List[Dict[str, Any]]] = field(default=None)

    def to_json(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "program": base64.b64encode(self.program).decode("ascii"),
            "entry_points_by_type": _entry_points_json(self.entry_points_by_type),
        }
        if self.abi is not None:
            data["abi"] = self.abi
        return data


#
# Decoding
#


def _parse_felt(value: Any, location: str) -> FieldElement:
    try:
        if isinstance(value, str):
            if value.startswith(("0x", "0X")):
                return FieldElement.from_hex(value)
            return FieldElement.from_dec_str(value)
        if isinstance(value, int) and not isinstance(value, bool):
            return FieldElement(value)
    except ValueError as e:
        raise ClassDecodingError(f"invalid field element {value!r}", location) from e
    raise ClassDecodingError(f"expected a field element, got {value!r}", location)


def _require(data: Dict[str, Any], key: str, location: str = "") -> Any:
    if key not in data:
        raise ClassDecodingError(f"missing field `{key}`", location + key)
    return data[key]


def _decode_entry_points(raw: Any, sierra: bool) -> Dict[str, List[Any]]:
    if not isinstance(raw, dict):
        raise ClassDecodingError(
            "entry points must be an object", "entry_points_by_type"
        )
    result: Dict[str, List[Any]] = {}
    for kind, points in raw.items():
        location = f"entry_points_by_type.{kind}"
        if not isinstance(points, list):
            raise ClassDecodingError("entry point list expected", location)
        decoded: List[Any] = []
        for index, point in enumerate(points):
            point_location = f"{location}[{index}]."
            if not isinstance(point, dict):
                raise ClassDecodingError("entry point object expected", point_location)
            selector = _parse_felt(
                _require(point, "selector", point_location),
                point_location + "selector",
            )
            if sierra:
                function_idx = _require(point, "function_idx", point_location)
                if isinstance(function_idx, bool) or not isinstance(function_idx, int):
                    raise ClassDecodingError(
                        "function_idx must be an integer",
                        point_location + "function_idx",
                    )
                decoded.append(SierraEntryPoint(selector, function_idx))
            else:
                offset = _parse_felt(
                    _require(point, "offset", point_location),
                    point_location + "offset",
                )
                decoded.append(LegacyEntryPoint(selector, offset))
        result[kind] = decoded
    return result


def decode_deployed_class(data: Union[bytes, str, Dict[str, Any]]) -> DeployedClass:
    """Decode a class document into a Sierra or a legacy class.

    A ``program`` field means a legacy class; otherwise ``sierra_program`` and
    ``contract_class_version`` must both be present. ``entry_points_by_type`` and
    ``abi`` are common to both (``abi`` may be omitted for legacy classes). A Sierra
    ``abi`` given as a JSON array, as in compiler ``contract_class.json`` output, is
    flattened to a compact JSON string; ``sierra_program_debug_info`` is ignored.

    Raises:
        ClassDecodingError: If the document is not JSON, matches neither shape, or a
            field has the wrong type. ``field`` names the offending field.
    """
    if isinstance(data, (bytes, str)):
        try:
            data = json.loads(data)
        except ValueError as e:
            raise ClassDecodingError(f"invalid JSON: {e}", "") from e
    if not isinstance(data, dict):
        raise ClassDecodingError("class document must be a JSON object", "")

    raw_entry_points = _require(data, "entry_points_by_type")

    if "program" in data:
        program = data["program"]
        if not isinstance(program, dict):
            raise ClassDecodingError("program must be an object", "program")
        abi = data.get("abi")
        if abi is not None and not isinstance(abi, list):
            raise ClassDecodingError("legacy abi must be a list", "abi")
        return LegacyContractClass(
            program=program,
            entry_points_by_type=_decode_entry_points(raw_entry_points, sierra=False),
            abi=abi,
        )

    raw_program = _require(data, "sierra_program")
    version = _require(data, "contract_class_version")
    abi = _require(data, "abi")
    if not isinstance(raw_program, list):
        raise ClassDecodingError("sierra_program must be a list", "sierra_program")
    if not isinstance(version, str):
        raise ClassDecodingError(
            "contract_class_version must be a string", "contract_class_version"
        )
    if isinstance(abi, list):
        # Compiler artifacts carry the ABI as a JSON array.
        abi = json.dumps(abi, separators=(",", ":"))
    elif not isinstance(abi, str):
        raise ClassDecodingError("sierra abi must be a string or a list", "abi")

    return FlattenedSierraClass(
        sierra_program=tuple(
            _parse_felt(value, f"sierra_program[{index}]")
            for index, value in enumerate(raw_program)
        ),
        contract_class_version=version,
        entry_points_by_type=_decode_entry_points(raw_entry_points, sierra=True),
        abi=abi,
    )


#
# Compression
#


def _compress(payload: Any, config: CompressionConfig) -> bytes:
    try:
        program_json = json.dumps(payload, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        raise CompressionError(str(e), CompressionErrorKind.JSON) from e
    try:
        return gzip.compress(
            program_json.encode("utf-8"), compresslevel=config.level, mtime=0
        )
    except (OSError, ValueError, zlib.error) as e:
        raise CompressionError(str(e), CompressionErrorKind.IO) from e


def compress_sierra_class(
    contract_class: FlattenedSierraClass,
    config: CompressionConfig = CompressionConfig(),
) -> CompressedSierraClass:
    """Compress the Sierra program of ``contract_class``.

    The program is serialized as a compact JSON array of lowercase ``0x`` hex
    strings before compression.

    Raises:
        CompressionError: ``kind`` tells JSON serialization and gzip failures apart.
    """
    program = [value.hex() for value in contract_class.sierra_program]
    return CompressedSierraClass(
        sierra_program=_compress(program, config),
        contract_class_version=contract_class.contract_class_version,
        entry_points_by_type=contract_class.entry_points_by_type,
        abi=contract_class.abi,
    )


def compress_legacy_class(
    contract_class: LegacyContractClass,
    config: CompressionConfig = CompressionConfig(),
) -> CompressedLegacyContractClass:
    return CompressedLegacyContractClass(
        program=_compress(contract_class.program, config),
        entry_points_by_type=contract_class.entry_points_by_type,
        abi=contract_class.abi,
    )


#
# Legacy class hash
#


def compute_hinted_class_hash(contract_class: LegacyContractClass) -> FieldElement:
    """Keccak of the class JSON with debug info stripped.

    Attribute fields added by later compiler versions are pruned when empty so
    that classes hash the same as when they were first deployed. Programs compiled
    before Cairo 0.10 (no ``compiler_version``) hash differently on chain and are
    not supported.
    """
    program = copy.deepcopy(contract_class.program)
    program["debug_info"] = None

    if "attributes" in program:
        if len(program["attributes"]) == 0:
            del program["attributes"]
        else:
            for attribute in program["attributes"]:
                if attribute.get("accessible_scopes") == []:
                    del attribute["accessible_scopes"]
                if (
                    "flow_tracking_data" in attribute
                    and attribute["flow_tracking_data"] is None
                ):
                    del attribute["flow_tracking_data"]

    dumped = json.dumps(
        {"abi": contract_class.abi or [], "program": program}, sort_keys=True
    )
    return starknet_keccak(dumped.encode("utf-8"))


def _flatten_entry_points(points: List[LegacyEntryPoint]) -> List[FieldElement]:
    flattened: List[FieldElement] = []
    for point in points:
        flattened.extend([point.selector, point.offset])
    return flattened


def compute_legacy_class_hash(contract_class: LegacyContractClass) -> FieldElement:
    """Class hash of a Cairo 0 class.

    Pedersen hash-on-elements over the API version, the flattened
    ``(selector, offset)`` lists of the external, L1 handler and constructor entry
    points, the builtin names, the hinted class hash and the program bytecode.

    Raises:
        ClassDecodingError: If ``builtins`` or ``data`` are missing or malformed.
    """
    program = contract_class.program
    builtins = _require(program, "builtins", "program.")
    bytecode = _require(program, "data", "program.")

    entry_point_hashes = [
        compute_hash_on_elements(
            _flatten_entry_points(contract_class.entry_points_by_type.get(kind, []))
        )
        for kind in ENTRY_POINT_TYPES
    ]
    builtin_felts = [cairo_short_string_to_felt(builtin) for builtin in builtins]
    data = [
        _parse_felt(value, f"program.data[{index}]")
        for index, value in enumerate(bytecode)
    ]

    return compute_hash_on_elements(
        [
            LEGACY_API_VERSION,
            *entry_point_hashes,
            compute_hash_on_elements(builtin_felts),
            compute_hinted_class_hash(contract_class),
            compute_hash_on_elements(data),
        ]
    )


class Test(unittest.TestCase):
    SIERRA = {
        "sierra_program": ["0x1", "0x2", "0xAbC"],
        "contract_class_version": "0.1.0",
        "entry_points_by_type": {
            "EXTERNAL": [{"selector": "0x10", "function_idx": 0}],
            "L1_HANDLER": [],
            "CONSTRUCTOR": [],
        },
        "abi": "[]",
    }

    LEGACY = {
        "abi": [{"type": "function", "name": "mint", "inputs": [], "outputs": []}],
        "entry_points_by_type": {
            "EXTERNAL": [{"selector": "0x10", "offset": "0x2"}],
            "L1_HANDLER": [],
            "CONSTRUCTOR": [{"selector": "0x20", "offset": 7}],
        },
        "program": {
            "builtins": ["pedersen", "range_check"],
            "data": ["0x40780017fff7fff", "0x1"],
            "debug_info": {"file_contents": {}},
            "attributes": [],
            "compiler_version": "0.10.3",
        },
    }

    def test_decode_sierra(self):
        decoded = decode_deployed_class(json.dumps(self.SIERRA))
        assert isinstance(decoded, FlattenedSierraClass)
        self.assertEqual(
            decoded.sierra_program,
            (FieldElement(1), FieldElement(2), FieldElement(0xABC)),
        )
        self.assertEqual(
            decoded.entry_points_by_type["EXTERNAL"],
            [SierraEntryPoint(FieldElement(0x10), 0)],
        )

    def test_decode_compiler_artifact(self):
        artifact = dict(self.SIERRA)
        artifact["sierra_program_debug_info"] = {
            "type_names": [],
            "libfunc_names": [],
            "user_func_names": [],
        }
        artifact["abi"] = [
            {
                "type": "function",
                "name": "mint",
                "inputs": [{"name": "amount", "type": "core::felt252"}],
                "outputs": [],
                "state_mutability": "external",
            }
        ]
        decoded = decode_deployed_class(json.dumps(artifact))
        assert isinstance(decoded, FlattenedSierraClass)
        self.assertEqual(
            decoded.abi,
            '[{"type":"function","name":"mint",'
            '"inputs":[{"name":"amount","type":"core::felt252"}],'
            '"outputs":[],"state_mutability":"external"}]',
        )
        self.assertEqual(json.loads(decoded.abi), artifact["abi"])
        self.assertEqual(compress_sierra_class(decoded).to_json()["abi"], decoded.abi)

        artifact["abi"] = 7
        with self.assertRaises(ClassDecodingError) as context:
            decode_deployed_class(artifact)
        self.assertEqual(context.exception.field, "abi")

    def test_decode_legacy(self):
        decoded = decode_deployed_class(json.dumps(self.LEGACY).encode())
        assert isinstance(decoded, LegacyContractClass)
        self.assertEqual(
            decoded.entry_points_by_type["CONSTRUCTOR"],
            [LegacyEntryPoint(FieldElement(0x20), FieldElement(7))],
        )

    def test_decode_errors(self):
        with self.assertRaises(ClassDecodingError) as context:
            decode_deployed_class({"entry_points_by_type": {}, "abi": "[]"})
        self.assertEqual(context.exception.field, "sierra_program")

        partial = dict(self.SIERRA)
        del partial["contract_class_version"]
        with self.assertRaises(ClassDecodingError) as context:
            decode_deployed_class(partial)
        self.assertEqual(context.exception.field, "contract_class_version")

        broken = copy.deepcopy(self.SIERRA)
        broken["sierra_program"][1] = "0xzz"
        with self.assertRaises(ClassDecodingError) as context:
            decode_deployed_class(broken)
        self.assertEqual(context.exception.field, "sierra_program[1]")

        with self.assertRaises(ClassDecodingError):
            decode_deployed_class("{not json")

    def test_compress_sierra(self):
        decoded = decode_deployed_class(self.SIERRA)
        assert isinstance(decoded, FlattenedSierraClass)
        first = compress_sierra_class(decoded, CompressionConfig())
        second = compress_sierra_class(decoded, CompressionConfig())
        self.assertEqual(first.sierra_program, second.sierra_program)
        self.assertEqual(
            gzip.decompress(first.sierra_program), b'["0x1","0x2","0xabc"]'
        )
        self.assertEqual(first.entry_points_by_type, decoded.entry_points_by_type)

        wire = first.to_json()
        self.assertEqual(base64.b64decode(wire["sierra_program"]), first.sierra_program)
        self.assertEqual(wire["abi"], "[]")
        self.assertEqual(
            wire["entry_points_by_type"]["EXTERNAL"],
            [{"selector": "0x10", "function_idx": 0}],
        )

    def test_compression_level_is_configurable(self):
        decoded = decode_deployed_class(self.SIERRA)
        assert isinstance(decoded, FlattenedSierraClass)
        stored = compress_sierra_class(decoded, CompressionConfig(level=0))
        self.assertEqual(
            gzip.decompress(stored.sierra_program), b'["0x1","0x2","0xabc"]'
        )
        with self.assertRaises(ValueError):
            CompressionConfig(level=10)

    def test_compress_legacy(self):
        decoded = decode_deployed_class(self.LEGACY)
        assert isinstance(decoded, LegacyContractClass)
        compressed = compress_legacy_class(decoded)
        self.assertEqual(
            json.loads(gzip.decompress(compressed.program)), self.LEGACY["program"]
        )
        self.assertEqual(compressed.to_json()["abi"], self.LEGACY["abi"])
        without_abi = LegacyContractClass(decoded.program, decoded.entry_points_by_type)
        self.assertNotIn("abi", compress_legacy_class(without_abi).to_json())

    def test_compression_errors(self):
        unserializable = LegacyContractClass({"data": [object()]}, {})
        with self.assertRaises(CompressionError) as context:
            compress_legacy_class(unserializable)
        self.assertEqual(context.exception.kind, CompressionErrorKind.JSON)

        decoded = decode_deployed_class(self.SIERRA)
        assert isinstance(decoded, FlattenedSierraClass)
        with unittest.mock.patch("starknet_sdk.contract_class.gzip.compress") as compress:
            compress.side_effect = OSError("disk on fire")
            with self.assertRaises(CompressionError) as context:
                compress_sierra_class(decoded)
        self.assertEqual(context.exception.kind, CompressionErrorKind.IO)

    def test_hinted_class_hash_strips_debug_info(self):
        decoded = decode_deployed_class(self.LEGACY)
        assert isinstance(decoded, LegacyContractClass)
        expected_json = (
            '{"abi": [{"inputs": [], "name": "mint", "outputs": [], "type": "function"}], '
            '"program": {"builtins": ["pedersen", "range_check"], '
            '"compiler_version": "0.10.3", '
            '"data": ["0x40780017fff7fff", "0x1"], "debug_info": null}}'
        )
        self.assertEqual(
            compute_hinted_class_hash(decoded),
            starknet_keccak(expected_json.encode()),
        )
        # The class itself is left untouched.
        self.assertEqual(decoded.program["attributes"], [])

    def test_legacy_class_hash_layout(self):
        decoded = decode_deployed_class(self.LEGACY)
        assert isinstance(decoded, LegacyContractClass)
        expected = compute_hash_on_elements(
            [
                FieldElement.ZERO,
                compute_hash_on_elements([FieldElement(0x10), FieldElement(2)]),
                compute_hash_on_elements([]),
                compute_hash_on_elements([FieldElement(0x20), FieldElement(7)]),
                compute_hash_on_elements(
                    [
                        cairo_short_string_to_felt("pedersen"),
                        cairo_short_string_to_felt("range_check"),
                    ]
                ),
                compute_hinted_class_hash(decoded),
                compute_hash_on_elements(
                    [FieldElement(0x40780017FFF7FFF), FieldElement(1)]
                ),
            ]
        )
        self.assertEqual(compute_legacy_class_hash(decoded), expected)


if __name__ == "__main__":
    unittest.main()
