"""Disposable V8 contexts for running snippets.

Each ``JsSandbox`` owns a fresh ``MiniRacer`` context with no file system,
network or module loader. A small prelude installs a capturing ``console``
and a runner that evaluates the snippet with an indirect ``eval`` and
returns a JSON description of the outcome, with values in the tagged form
understood by :func:`decode_value`.
"""

import json
import math
from typing import Any, Optional

from py_mini_racer import JSEvalException, JSOOMException, JSTimeoutException, MiniRacer

from snipcheck.exceptions import RuntimeFault, SandboxError, Timeout
from snipcheck.models import (
    ArrayValue,
    BoolValue,
    NullValue,
    NumberValue,
    ObjectValue,
    OpaqueValue,
    StringValue,
    UndefinedValue,
    Value,
)
from snipcheck.utils.logging_config import get_logger

logger = get_logger()

PRELUDE = r"""
(function (global) {
  var logs = [];

  function describeFunction(fn) {
    var text = Function.prototype.toString.call(fn);
    if (/^class\b/.test(text)) {
      return "[class " + (fn.name || "(anonymous)") + "]";
    }
    return fn.name ? "[Function: " + fn.name + "]" : "[Function (anonymous)]";
  }

  function encode(value, seen) {
    if (value === undefined) return { kind: "undefined" };
    if (value === null) return { kind: "null" };
    switch (typeof value) {
      case "boolean":
        return { kind: "bool", value: value };
      case "number":
        if (value !== value) return { kind: "number", special: "NaN" };
        if (value === Infinity) return { kind: "number", special: "Infinity" };
        if (value === -Infinity) return { kind: "number", special: "-Infinity" };
        if (value === 0 && 1 / value < 0) return { kind: "number", special: "-0" };
        return { kind: "number", value: value };
      case "string":
        return { kind: "string", value: value };
      case "bigint":
        return { kind: "opaque", description: String(value) + "n" };
      case "symbol":
        return { kind: "opaque", description: String(value) };
      case "function":
        return { kind: "opaque", description: describeFunction(value) };
    }

    if (seen.indexOf(value) !== -1) return { kind: "opaque", description: "[Circular]" };
    seen.push(value);
    try {
      if (Array.isArray(value)) {
        var items = [];
        for (var i = 0; i < value.length; i++) items.push(encode(value[i], seen));
        return { kind: "array", items: items };
      }
      if (value instanceof Error) {
        return { kind: "opaque", description: value.name + ": " + value.message };
      }
      if (value instanceof Date) {
        return { kind: "opaque", description: isNaN(value) ? "Invalid Date" : value.toISOString() };
      }
      if (value instanceof RegExp) return { kind: "opaque", description: String(value) };
      if (value instanceof Map) return { kind: "opaque", description: "Map(" + value.size + ")" };
      if (value instanceof Set) return { kind: "opaque", description: "Set(" + value.size + ")" };
      if (value instanceof Promise) return { kind: "opaque", description: "Promise" };

      var entries = Object.create(null);
      Object.keys(value).forEach(function (key) {
        var desc = Object.getOwnPropertyDescriptor(value, key);
        if (desc && (desc.get || desc.set)) {
          var label = desc.get && desc.set ? "[Getter/Setter]" : desc.get ? "[Getter]" : "[Setter]";
          entries[key] = { kind: "opaque", description: label };
        } else {
          entries[key] = encode(value[key], seen);
        }
      });
      return { kind: "object", entries: entries };
    } finally {
      seen.pop();
    }
  }

  function safeEncode(value) {
    try {
      return encode(value, []);
    } catch (err) {
      return { kind: "opaque", description: "[Uninspectable]" };
    }
  }

  function capture() {
    var args = Array.prototype.slice.call(arguments);
    logs.push(args.map(safeEncode));
  }

  global.console = {
    log: capture, info: capture, warn: capture, error: capture,
    debug: capture, trace: capture, dir: capture, table: capture
  };

  function errorKind(err) {
    if (err instanceof Error) {
      if (err.name === "Error" && err.constructor && err.constructor.name) {
        return err.constructor.name;
      }
      return String(err.name);
    }
    return "Uncaught";
  }

  global.__snipcheck_run = function (source) {
    logs = [];
    var outcome;
    var completion;
    try {
      completion = (0, eval)(source);
      outcome = { ok: true };
    } catch (err) {
      outcome = { ok: false, kind: errorKind(err) };
      if (err instanceof Error) {
        outcome.message = String(err.message);
      } else {
        outcome.thrown = safeEncode(err);
      }
    }
    if (outcome.ok) {
      // Inspection runs outside the snippet's try so it cannot fail the snippet
      outcome.value = safeEncode(completion);
    }
    outcome.console = logs;
    logs = [];
    return JSON.stringify(outcome);
  };
})(globalThis);
"""

SPECIAL_NUMBERS = {
    "NaN": math.nan,
    "Infinity": math.inf,
    "-Infinity": -math.inf,
    "-0": -0.0,
}


def decode_value(data: dict[str, Any]) -> Value:
    """Turn the prelude's tagged JSON into a Value."""
    kind = data.get("kind")

    if kind == "null":
        return NullValue()
    if kind == "undefined":
        return UndefinedValue()
    if kind == "bool":
        return BoolValue(value=data["value"])
    if kind == "number":
        special = data.get("special")
        if special is not None:
            return NumberValue(value=SPECIAL_NUMBERS[special])
        return NumberValue(value=float(data["value"]))
    if kind == "string":
        return StringValue(value=data["value"])
    if kind == "array":
        return ArrayValue(items=[decode_value(item) for item in data["items"]])
    if kind == "object":
        return ObjectValue(entries={k: decode_value(v) for k, v in data["entries"].items()})
    if kind == "opaque":
        return OpaqueValue(description=data["description"])

    raise SandboxError(f"Unknown value kind from sandbox: {kind!r}")


class JsSandbox:
    """A single-use JavaScript context.

    Use as a context manager; the V8 context is closed on exit::

        with JsSandbox(timeout=2.0) as sandbox:
            outcome = sandbox.run("[1, 2, 3].map(x => x * 2)")
    """

    def __init__(self, timeout: float, max_memory: Optional[int] = None):
        self.timeout = timeout
        self.max_memory = max_memory
        self._ctx: Optional[MiniRacer] = None

    def __enter__(self) -> "JsSandbox":
        self._ctx = MiniRacer()
        try:
            self._ctx.eval(PRELUDE)
        except JSEvalException as e:
            self.close()
            raise SandboxError(f"Failed to initialise sandbox: {e}") from e
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        if self._ctx is not None:
            self._ctx.close()
            self._ctx = None

    def run(self, code: str) -> dict[str, Any]:
        """Evaluate ``code`` and return the raw outcome.

        Raises:
            Timeout: If the script exceeded the execution bound
            RuntimeFault: If the engine aborted the script (e.g. out of memory)
        """
        if self._ctx is None:
            raise SandboxError("Sandbox is not open")

        kwargs: dict[str, Any] = {"timeout": int(self.timeout * 1000)}
        if self.max_memory is not None:
            kwargs["max_memory"] = self.max_memory

        try:
            raw = self._ctx.eval(f"__snipcheck_run({json.dumps(code)})", **kwargs)
        except JSTimeoutException as e:
            raise Timeout(f"exceeded {self.timeout:g}s") from e
        except JSOOMException as e:
            raise RuntimeFault("OutOfMemory", "sandbox heap limit reached") from e
        except JSEvalException as e:
            raise RuntimeFault("EngineError", str(e).strip().splitlines()[0] if str(e).strip() else "") from e

        return json.loads(raw)
