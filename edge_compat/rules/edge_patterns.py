"""Detect code patterns that misbehave under Edge runtime restrictions."""

from __future__ import annotations

from typing import List

from edge_compat.result import Finding, Suggestion
from edge_compat.severity import Severity

from . import Rule, RuleContext
from .matching import matcher_for

LONG_TIMER_THRESHOLD_MS = 30000


class EvalRule(Rule):
    """Flag ``eval()`` and ``new Function()``."""

    id = "edge/pattern:eval"
    name = "Eval usage detected"
    description = "Usage of eval() or new Function() is discouraged in Edge runtimes for security and performance."
    category = "edge-pattern"
    severity = Severity.ERROR

    MESSAGE = "Dynamic code execution with eval() or new Function() is not allowed in many Edge runtimes."
    SUGGESTIONS = (
        Suggestion(message="Refactor to use static code and imports"),
        Suggestion(message="Consider alternative patterns like configuration objects or strategy pattern"),
    )

    def detect(self, context: RuleContext) -> List[Finding]:
        return [
            self.build_finding(context, match, self.MESSAGE, self.SUGGESTIONS)
            for match in matcher_for(context).eval_calls(context)
        ]


class WasmSyncRule(Rule):
    """Flag synchronous ``WebAssembly.Instance``/``WebAssembly.Module`` construction."""

    id = "edge/pattern:wasm-sync"
    name = "Synchronous WASM instantiation"
    description = "Synchronous WASM instantiation may not work in Edge runtimes."
    category = "edge-pattern"
    severity = Severity.WARNING

    MESSAGE = "Synchronous WASM instantiation detected. Use async methods for Edge compatibility."
    SUGGESTIONS = (
        Suggestion(
            message="Use WebAssembly.instantiate() or WebAssembly.compile() (async)",
            import_statement="const module = await WebAssembly.instantiate(wasmBytes);",
            docs_url=(
                "https://developer.mozilla.org/en-US/docs/Web/JavaScript/Reference/"
                "Global_Objects/WebAssembly/instantiate"
            ),
        ),
    )

    def detect(self, context: RuleContext) -> List[Finding]:
        return [
            self.build_finding(context, match, self.MESSAGE, self.SUGGESTIONS)
            for match in matcher_for(context).wasm_instantiations(context)
        ]


class LongTimerRule(Rule):
    """Flag timers whose literal delay is strictly above the threshold."""

    id = "edge/pattern:long-timers"
    name = "Long-running timers"
    description = "Long setTimeout/setInterval delays may not work reliably in Edge runtimes."
    category = "edge-pattern"
    severity = Severity.WARNING

    SUGGESTIONS = (
        Suggestion(message="Use task queues or scheduled functions for delayed execution"),
        Suggestion(message="Vercel: Use Vercel Cron Jobs", docs_url="https://vercel.com/docs/cron-jobs"),
        Suggestion(
            message="Cloudflare: Use Durable Objects or scheduled Workers",
            docs_url="https://developers.cloudflare.com/workers/configuration/cron-triggers/",
        ),
    )

    def __init__(self, threshold_ms: int = LONG_TIMER_THRESHOLD_MS) -> None:
        self.threshold_ms = threshold_ms

    def detect(self, context: RuleContext) -> List[Finding]:
        findings: List[Finding] = []
        for match in matcher_for(context).timer_calls(context):
            if match.delay is None or match.delay <= self.threshold_ms:
                continue
            message = (
                f"{match.value} with delay of {match.delay}ms detected. "
                "Edge functions typically have execution time limits."
            )
            findings.append(self.build_finding(context, match, message, self.SUGGESTIONS))
        return findings
