"""
Sandbox Executor
Runs untrusted JavaScript fragments inside an isolated embedded V8 context

Each Sandbox owns a fresh MiniRacer isolate: no module loader, no Node.js
process object, no host object graph. The global surface is an explicit
allow-list (console stubs, atob/btoa, timer stubs that never fire) and every
evaluation is bounded by a wall-clock timeout. One sandbox serves one
prelude execution and is closed right after the live decoders are used.
"""

import json
import logging
import re
from typing import Callable, List

from py_mini_racer import JSTimeoutException, MiniRacer

from .errors import SandboxFailure

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r'[A-Za-z_$][\w$]*')

# Allow-listed globals
BASE_HEADER = r"""
var console = (function () {
  var noop = function () {};
  return { log: noop, info: noop, warn: noop, error: noop, debug: noop, trace: noop };
})();
var setTimeout = function () { return 0; };
var setInterval = function () { return 0; };
var setImmediate = function () { return 0; };
var clearTimeout = function () {};
var clearInterval = function () {};
var clearImmediate = function () {};
var __b64chars = 'ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/=';
function atob(input) {
  var str = String(input).replace(/[=]+$/, '');
  var output = '';
  for (var bc = 0, bs = 0, buffer, idx = 0;
       (buffer = str.charAt(idx++));
       ~buffer && (bs = bc % 4 ? bs * 64 + buffer : buffer, bc++ % 4)
         ? (output += String.fromCharCode(255 & (bs >> ((-2 * bc) & 6))))
         : 0) {
    buffer = __b64chars.indexOf(buffer);
  }
  return output;
}
function btoa(input) {
  var str = String(input);
  var output = '';
  for (var block = 0, charCode, idx = 0, map = __b64chars;
       str.charAt(idx | 0) || ((map = '='), idx % 1);
       output += map.charAt(63 & (block >> (8 - (idx % 1) * 8)))) {
    charCode = str.charCodeAt((idx += 3 / 4));
    block = (block << 8) | charCode;
  }
  return output;
}
"""

# Host-sensitive names reachable through indirect eval, e.g. (1,eval)('this').process
DENY_HEADER = r"""
var process = void 0, require = void 0, module = void 0, exports = void 0,
    global = void 0, Buffer = void 0, __dirname = void 0, __filename = void 0;
"""

# Function-constructor / eval capture used by the self-decoding encodings.
# Bodies of the form `return ...` are payload-string builders and are built
# for real; any other body is recorded and replaced by a no-op.
CAPTURE_HEADER = r"""
var __captured = [];
(function () {
  var NativeFunction = Function;
  var capture = function () {
    var args = Array.prototype.slice.call(arguments);
    var body = args.length ? String(args[args.length - 1]) : '';
    if (/^\s*return[\s"'(\[]/.test(body)) {
      return NativeFunction.apply(null, args);
    }
    __captured.push(body);
    return function () {};
  };
  capture.prototype = NativeFunction.prototype;
  Object.defineProperty(NativeFunction.prototype, 'constructor', {
    value: capture, writable: true, configurable: true
  });
  Function = capture;
  eval = function (source) { __captured.push(String(source)); };
})();
"""


class Sandbox:
    """
    Capability-restricted JavaScript execution context

    Usage:
        with Sandbox(timeout_secs=1.0) as sandbox:
            sandbox.execute(prelude_source)
            decode = sandbox.function('_0x1e61')
            decode(0x1a, 'key')
    """

    def __init__(self, timeout_secs: float = 1.0, capture_dynamic_code: bool = False):
        """
        Args:
            timeout_secs: Wall-clock budget for every single evaluation
            capture_dynamic_code: Install Function/eval capture hooks
        """
        self.timeout_secs = timeout_secs
        self.capture_dynamic_code = capture_dynamic_code
        self._ctx = None

    def __enter__(self) -> 'Sandbox':
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @property
    def timeout_ms(self) -> int:
        return max(1, int(self.timeout_secs * 1000))

    def open(self):
        self._ctx = MiniRacer()
        self._eval(BASE_HEADER + DENY_HEADER)
        if self.capture_dynamic_code:
            self._eval(CAPTURE_HEADER)

    def close(self):
        if self._ctx is not None:
            self._ctx.close()
            self._ctx = None

    def execute(self, source: str):
        """
        Run a script in the sandbox

        Returns:
            Value of the last expression statement, converted to Python

        Raises:
            SandboxFailure: the script threw, or ran past the timeout
        """
        return self._eval(source)

    def type_of(self, name: str) -> str:
        """JavaScript typeof of a global binding"""
        if not _IDENTIFIER.fullmatch(name):
            raise ValueError(f"not an identifier: {name!r}")
        return self._eval(f"typeof {name}")

    def function(self, name: str) -> Callable:
        """
        Live reference to a global function

        Calling it forwards JSON-encoded arguments into the isolate and
        returns the converted result.
        """
        if not _IDENTIFIER.fullmatch(name):
            raise ValueError(f"not an identifier: {name!r}")

        def call(*args):
            return self._call(name, *args)

        call.__name__ = name
        return call

    def captured_code(self) -> List[str]:
        """Bodies handed to Function()/eval() since the sandbox opened"""
        if not self.capture_dynamic_code:
            return []
        return json.loads(self._eval("JSON.stringify(__captured)"))

    def _eval(self, source: str):
        if self._ctx is None:
            raise SandboxFailure("sandbox is not open")
        try:
            return self._ctx.eval(source, timeout=self.timeout_ms)
        except JSTimeoutException as e:
            logger.debug("Sandbox evaluation timed out after %.2fs", self.timeout_secs)
            self._settle()
            raise SandboxFailure(f"timed out after {self.timeout_secs}s", timed_out=True) from e
        except Exception as e:
            raise SandboxFailure(str(e)) from e

    def _call(self, name: str, *args):
        if self._ctx is None:
            raise SandboxFailure("sandbox is not open")
        try:
            return self._ctx.call(name, *args, timeout=self.timeout_ms)
        except JSTimeoutException as e:
            self._settle()
            raise SandboxFailure(f"{name}() timed out after {self.timeout_secs}s", timed_out=True) from e
        except Exception as e:
            raise SandboxFailure(str(e)) from e

    def _settle(self):
        """
        Wait for a timed-out evaluation to finish terminating

        The isolate runs tasks in order, so a trivial evaluation returns only
        after the cancelled one has reported back. Closing before that would
        leave its completion callback aimed at a stopped event loop.
        """
        try:
            self._ctx.eval("0")
        except Exception as e:
            logger.debug("Sandbox did not settle after timeout: %s", e)
