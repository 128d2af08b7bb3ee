"""
ABI Loader and codec for the staking contracts.

ABIs for Manager, Stakes, Bank, Repository and the mock tokens ship with the
package (chain/abis/*.json).  Compiled Foundry or Hardhat artifacts found
under TIMELEAP_ARTIFACTS_DIR take precedence, and are the only source of
deployment bytecode.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

from eth_abi import decode, encode
from eth_hash.auto import keccak
from eth_utils import to_checksum_address

BUNDLED_ABI_DIR = Path(__file__).resolve().parent / "abis"

ERROR_STRING_SELECTOR = "0x08c379a0"  # Error(string)
PANIC_SELECTOR = "0x4e487b71"  # Panic(uint256)


def get_artifacts_dir() -> Optional[Path]:
    """Get the compiled artifacts directory from the environment, if set."""
    value = os.environ.get("TIMELEAP_ARTIFACTS_DIR")
    return Path(value).expanduser() if value else None


def _find_artifact(contract_name: str, artifacts_dir: Path) -> Optional[Path]:
    """
    Locate a compiled artifact for a contract.

    Understands Foundry (out/<Name>.sol/<Name>.json) and Hardhat
    (artifacts/contracts/<Name>.sol/<Name>.json) layouts.
    """
    candidates = [
        artifacts_dir / f"{contract_name}.sol" / f"{contract_name}.json",
        artifacts_dir / "contracts" / f"{contract_name}.sol" / f"{contract_name}.json",
    ]
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    for candidate in sorted(artifacts_dir.rglob(f"{contract_name}.sol/{contract_name}.json")):
        return candidate
    return None


def _read_json(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


@lru_cache(maxsize=32)
def _load_abi_cached(contract_name: str, artifacts_dir: Optional[str]) -> tuple[dict[str, Any], ...]:
    if artifacts_dir is not None:
        artifact_path = _find_artifact(contract_name, Path(artifacts_dir))
        if artifact_path is not None:
            return tuple(_read_json(artifact_path)["abi"])

    bundled = BUNDLED_ABI_DIR / f"{contract_name}.json"
    if not bundled.exists():
        raise FileNotFoundError(
            f"ABI not found for {contract_name}. "
            f"Set TIMELEAP_ARTIFACTS_DIR to your compiled contracts output."
        )
    return tuple(_read_json(bundled))


def load_abi(contract_name: str, artifacts_dir: Optional[Path] = None) -> list[dict[str, Any]]:
    """
    Load the ABI for a contract.

    Args:
        contract_name: Contract name (e.g., "Manager", "Stakes")
        artifacts_dir: Compiled artifacts directory (default: TIMELEAP_ARTIFACTS_DIR)

    Returns:
        ABI as a list of dicts

    Raises:
        FileNotFoundError: If neither an artifact nor a bundled ABI exists
    """
    resolved = artifacts_dir or get_artifacts_dir()
    return list(_load_abi_cached(contract_name, str(resolved) if resolved else None))


def load_bytecode(contract_name: str, artifacts_dir: Optional[Path] = None) -> str:
    """
    Load deployment bytecode for a contract from compiled artifacts.

    Returns:
        Hex-encoded bytecode string (0x-prefixed)
    """
    resolved = artifacts_dir or get_artifacts_dir()
    if resolved is None:
        raise FileNotFoundError(
            f"Bytecode for {contract_name} needs compiled artifacts. "
            f"Set TIMELEAP_ARTIFACTS_DIR."
        )

    artifact_path = _find_artifact(contract_name, resolved)
    if artifact_path is None:
        raise FileNotFoundError(f"Artifact not found for {contract_name} in {resolved}")

    bytecode = _read_json(artifact_path).get("bytecode", "")
    # Foundry nests the hex under "object", Hardhat stores it directly
    if isinstance(bytecode, dict):
        bytecode = bytecode.get("object", "")
    if not bytecode or bytecode == "0x":
        raise ValueError(f"No bytecode in artifact for {contract_name}")

    return bytecode if bytecode.startswith("0x") else "0x" + bytecode


# ---------------------------------------------------------------------------
# Function encoding
# ---------------------------------------------------------------------------

def _type_string(param: dict[str, Any]) -> str:
    """Canonical ABI type, expanding tuples into their component types."""
    typ = param["type"]
    if typ.startswith("tuple"):
        inner = ",".join(_type_string(c) for c in param.get("components", []))
        return f"({inner}){typ[len('tuple'):]}"
    return typ


def _hex_to_bytes(data: str) -> bytes:
    return bytes.fromhex(data[2:] if data.startswith("0x") else data)


def find_function(abi: list, function_name: str, arg_count: Optional[int] = None) -> dict[str, Any]:
    """
    Find a function entry, telling overloads apart by argument count.

    Raises:
        ValueError: If no entry matches, or the name is overloaded and
            arg_count does not pick exactly one
    """
    matches = [
        entry for entry in abi
        if entry.get("type") == "function" and entry.get("name") == function_name
    ]
    if arg_count is not None:
        matches = [m for m in matches if len(m.get("inputs", [])) == arg_count]

    if not matches:
        suffix = f" with {arg_count} arguments" if arg_count is not None else ""
        raise ValueError(f"Function {function_name}{suffix} not found in ABI")
    if len(matches) > 1:
        raise ValueError(f"Function {function_name} is overloaded; pass arg_count")
    return matches[0]


def function_signature(entry: dict[str, Any]) -> str:
    input_types = [_type_string(inp) for inp in entry.get("inputs", [])]
    return f"{entry['name']}({','.join(input_types)})"


def selector(signature: str) -> bytes:
    """First 4 bytes of keccak256 of a canonical signature."""
    # NOTE: Keccak-256 != SHA3-256 (NIST). Never use hashlib.sha3_256 here.
    return keccak(signature.encode("utf-8"))[:4]


def function_selector(entry: dict[str, Any]) -> str:
    return "0x" + selector(function_signature(entry)).hex()


def encode_call(abi: list, function_name: str, args: list) -> str:
    """
    ABI-encode a function call.

    Returns:
        0x-prefixed hex encoded calldata
    """
    func = find_function(abi, function_name, len(args))
    input_types = [_type_string(inp) for inp in func.get("inputs", [])]
    encoded_args = encode(input_types, list(args)) if args else b""
    return "0x" + selector(function_signature(func)).hex() + encoded_args.hex()


def decode_result(abi: list, function_name: str, data: str, arg_count: Optional[int] = None) -> Any:
    """
    ABI-decode a function call result.

    Returns:
        None for functions without outputs, the single value for one
        output, otherwise a tuple
    """
    func = find_function(abi, function_name, arg_count)
    output_types = [_type_string(out) for out in func.get("outputs", [])]
    if not output_types:
        return None

    decoded = decode(output_types, _hex_to_bytes(data))
    if len(decoded) == 1:
        return decoded[0]
    return decoded


def encode_constructor_args(abi: list, args: list) -> str:
    """ABI-encode constructor arguments as hex without a 0x prefix."""
    constructor = next((e for e in abi if e.get("type") == "constructor"), None)
    if constructor is None:
        if args:
            raise ValueError("Constructor not found in ABI, but constructor_args were provided.")
        return ""
    input_types = [_type_string(inp) for inp in constructor.get("inputs", [])]
    if len(input_types) != len(args):
        raise ValueError(f"Constructor takes {len(input_types)} arguments, got {len(args)}")
    return encode(input_types, list(args)).hex() if args else ""


# ---------------------------------------------------------------------------
# Revert decoding
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DecodedRevert:
    """
    A decoded revert payload.

    Attributes:
        name: "Error", "Panic" or the custom error name (empty if unknown)
        args: Decoded error arguments
        reason: Human-readable reason, e.g. "NotUnlocked()"
    """
    name: str
    args: tuple
    reason: str


def decode_revert(abi: list, data: Optional[str]) -> Optional[DecodedRevert]:
    """
    Decode revert data returned by a node.

    Handles Error(string), Panic(uint256) and custom errors declared
    in the ABI.  Returns None when there is no revert payload.
    """
    if not data or len(data) < 10:
        return None

    sel = data[:10].lower()
    body = _hex_to_bytes(data[10:])

    if sel == ERROR_STRING_SELECTOR:
        (message,) = decode(["string"], body)
        return DecodedRevert("Error", (message,), message)

    if sel == PANIC_SELECTOR:
        (code,) = decode(["uint256"], body)
        return DecodedRevert("Panic", (code,), f"panic code 0x{code:02x}")

    for entry in abi:
        if entry.get("type") != "error":
            continue
        if function_selector(entry) != sel:
            continue
        input_types = [_type_string(inp) for inp in entry.get("inputs", [])]
        args = tuple(decode(input_types, body)) if input_types else ()
        rendered = ", ".join(str(a) for a in args)
        return DecodedRevert(entry["name"], args, f"{entry['name']}({rendered})")

    return DecodedRevert("", (), f"unknown custom error {sel}")


# ---------------------------------------------------------------------------
# Event decoding
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EventLog:
    """A decoded contract event."""
    name: str
    address: str
    args: dict[str, Any]
    log_index: Optional[int] = None

    def __getitem__(self, key: str) -> Any:
        return self.args[key]


def event_topic(entry: dict[str, Any]) -> str:
    return "0x" + keccak(function_signature(entry).encode("utf-8")).hex()


def decode_logs(abi: list, logs: list[dict[str, Any]], address: Optional[str] = None) -> list[EventLog]:
    """
    Decode receipt logs against the events declared in an ABI.

    Logs from other addresses (when address is given) and logs with
    unknown topics are skipped.  Indexed dynamic types cannot be
    recovered and are returned as the raw topic bytes.
    """
    by_topic = {
        event_topic(entry): entry
        for entry in abi
        if entry.get("type") == "event" and not entry.get("anonymous")
    }
    wanted = address.lower() if address else None

    events: list[EventLog] = []
    for log in logs:
        topics = log.get("topics") or []
        if not topics:
            continue
        if wanted and log.get("address", "").lower() != wanted:
            continue
        entry = by_topic.get(topics[0].lower())
        if entry is None:
            continue

        indexed = [inp for inp in entry["inputs"] if inp.get("indexed")]
        plain = [inp for inp in entry["inputs"] if not inp.get("indexed")]

        values: dict[str, Any] = {}
        for inp, topic in zip(indexed, topics[1:]):
            typ = _type_string(inp)
            raw = _hex_to_bytes(topic)
            if typ in ("string", "bytes") or typ.endswith("]") or typ.startswith("("):
                values[inp["name"]] = raw
            else:
                (values[inp["name"]],) = decode([typ], raw)

        data = log.get("data") or "0x"
        if plain:
            decoded = decode([_type_string(inp) for inp in plain], _hex_to_bytes(data))
            for inp, value in zip(plain, decoded):
                values[inp["name"]] = value

        log_index = log.get("logIndex")
        events.append(
            EventLog(
                name=entry["name"],
                address=to_checksum_address(log["address"]),
                args={inp["name"]: values[inp["name"]] for inp in entry["inputs"]},
                log_index=int(log_index, 16) if isinstance(log_index, str) else log_index,
            )
        )
    return events
