"""Detect Node.js core modules that are missing or limited in Edge runtimes."""

from __future__ import annotations

from typing import List, Sequence, Tuple

from edge_compat.result import Finding, Suggestion
from edge_compat.severity import Severity

from . import Rule, RuleContext
from .matching import MODULE_KINDS, Match, is_forbidden_module, matcher_for

EDGE_LIMITATIONS_URL = "https://vercel.com/docs/concepts/functions/edge-functions/limitations"


class ModuleRule(Rule):
    """Flag every import, require and dynamic import of one core module."""

    category = "node-core"

    def __init__(
        self,
        rule_id: str,
        module: str,
        severity: Severity,
        name: str,
        description: str,
        message: str,
        suggestions: Sequence[Suggestion],
    ) -> None:
        self.id = rule_id
        self.module = module
        self.severity = severity
        self.name = name
        self.description = description
        self.message = message
        self.suggestions: Tuple[Suggestion, ...] = tuple(suggestions)

    def detect(self, context: RuleContext) -> List[Finding]:
        return [
            self.build_finding(context, match, self.message, self.suggestions)
            for match in self._matches(context)
        ]

    def _matches(self, context: RuleContext) -> List[Match]:
        references = matcher_for(context).module_references(context, MODULE_KINDS)
        return [match for match in references if is_forbidden_module(match.value, self.module)]


class ForbiddenModuleRule(ModuleRule):
    """Core modules that do not exist in Edge runtimes at all."""

    def __init__(self, module: str, description: str, suggestions: Sequence[Suggestion]) -> None:
        super().__init__(
            rule_id=f"node-core/forbidden-module:{module}",
            module=module,
            severity=Severity.ERROR,
            name=f"Forbidden {module} module",
            description=description,
            message=f'Usage of Node.js "{module}" module detected. {description}',
            suggestions=suggestions,
        )


class CautionModuleRule(ModuleRule):
    """Core modules with partial support where a Web API is preferred."""

    def __init__(
        self,
        module: str,
        name: str,
        description: str,
        message: str,
        suggestions: Sequence[Suggestion],
    ) -> None:
        super().__init__(
            rule_id=f"node-core/caution:{module}",
            module=module,
            severity=Severity.WARNING,
            name=name,
            description=description,
            message=message,
            suggestions=suggestions,
        )


class BufferRule(CautionModuleRule):
    """Flag the ``buffer`` module and the global ``Buffer`` factory calls."""

    def _matches(self, context: RuleContext) -> List[Match]:
        matches = super()._matches(context) + matcher_for(context).buffer_calls(context)
        return sorted(matches, key=lambda match: match.start)


FORBIDDEN_MODULES: Tuple[Tuple[str, str, Tuple[Suggestion, ...]], ...] = (
    (
        "fs",
        "File system access is not available in Edge runtimes.",
        (
            Suggestion(
                message="Remove file system operations or move them to server-side API routes",
                docs_url=EDGE_LIMITATIONS_URL,
            ),
            Suggestion(
                message="For Next.js, use getStaticProps or getServerSideProps for build-time or server-side file access",
                docs_url="https://nextjs.org/docs/basic-features/data-fetching",
            ),
            Suggestion(
                message="For Cloudflare Workers, use Workers KV, R2, or Durable Objects for storage",
                docs_url="https://developers.cloudflare.com/workers/learning/how-kv-works/",
            ),
        ),
    ),
    (
        "net",
        "Network sockets are not available in Edge runtimes.",
        (
            Suggestion(message="Use fetch() or WebSocket for network communication"),
            Suggestion(
                message="For Cloudflare Workers, use TCP sockets from the runtime API",
                docs_url="https://developers.cloudflare.com/workers/runtime-apis/tcp-sockets/",
            ),
        ),
    ),
    (
        "tls",
        "TLS sockets are not available in Edge runtimes.",
        (Suggestion(message="Use fetch() with HTTPS URLs instead"),),
    ),
    (
        "child_process",
        "Child processes are not supported in Edge runtimes.",
        (Suggestion(message="Move process execution to server-side API routes or background jobs"),),
    ),
    (
        "cluster",
        "Cluster module is not available in Edge runtimes.",
        (Suggestion(message="Edge runtimes handle scaling automatically"),),
    ),
    (
        "worker_threads",
        "Worker threads are not available in Edge runtimes.",
        (
            Suggestion(
                message="Use Web Workers API or Cloudflare Durable Objects for parallel execution",
                docs_url="https://developer.mozilla.org/en-US/docs/Web/API/Web_Workers_API",
            ),
        ),
    ),
    (
        "dns",
        "DNS module is not available in Edge runtimes.",
        (Suggestion(message="Use fetch() or external DNS-over-HTTPS services"),),
    ),
    (
        "module",
        "Module system internals are not available in Edge runtimes.",
        (Suggestion(message="Use standard ESM imports instead of dynamic module manipulation"),),
    ),
    (
        "vm",
        "VM module is not available in Edge runtimes.",
        (Suggestion(message="Avoid dynamic code execution; use static imports and eval alternatives"),),
    ),
    (
        "perf_hooks",
        "Performance hooks are not available in Edge runtimes.",
        (
            Suggestion(
                message="Use Performance API (performance.now(), PerformanceMark) instead",
                docs_url="https://developer.mozilla.org/en-US/docs/Web/API/Performance",
            ),
        ),
    ),
    (
        "readline",
        "Readline module is not available in Edge runtimes.",
        (Suggestion(message="Edge functions do not support interactive I/O"),),
    ),
    (
        "repl",
        "REPL is not available in Edge runtimes.",
        (Suggestion(message="Edge functions do not support interactive execution"),),
    ),
    (
        "zlib",
        "Zlib module is not available in most Edge runtimes.",
        (
            Suggestion(
                message="Use CompressionStream and DecompressionStream (Web Streams API)",
                docs_url="https://developer.mozilla.org/en-US/docs/Web/API/CompressionStream",
                import_statement=(
                    "const compressed = await new Response("
                    "stream.pipeThrough(new CompressionStream('gzip'))).blob();"
                ),
            ),
        ),
    ),
)


def forbidden_module_rules() -> List[Rule]:
    return [ForbiddenModuleRule(module, description, suggestions) for module, description, suggestions in FORBIDDEN_MODULES]


def caution_rules() -> List[Rule]:
    return [
        CautionModuleRule(
            module="crypto",
            name="Node.js crypto module usage",
            description="Node.js crypto module detected. Prefer Web Crypto API for Edge compatibility.",
            message=(
                "Node.js crypto module usage detected. "
                "Consider using Web Crypto API for better Edge compatibility."
            ),
            suggestions=(
                Suggestion(
                    message="Use Web Crypto API (crypto.subtle) instead",
                    import_statement='const hash = await crypto.subtle.digest("SHA-256", data);',
                    docs_url="https://developer.mozilla.org/en-US/docs/Web/API/Web_Crypto_API",
                ),
                Suggestion(
                    message='For JWT operations, use the "jose" library',
                    package="jose",
                    import_statement='import * as jose from "jose";',
                    docs_url="https://github.com/panva/jose",
                ),
            ),
        ),
        BufferRule(
            module="buffer",
            name="Node.js Buffer usage",
            description="Node.js Buffer detected. Prefer Uint8Array and Web APIs for Edge compatibility.",
            message="Node.js Buffer usage detected. Prefer Uint8Array and Web APIs for Edge compatibility.",
            suggestions=(
                Suggestion(
                    message="Use Uint8Array instead of Buffer",
                    import_statement="const bytes = new Uint8Array([1, 2, 3]);",
                ),
                Suggestion(
                    message="Use TextEncoder/TextDecoder for string conversion",
                    import_statement='const encoder = new TextEncoder(); const bytes = encoder.encode("hello");',
                    docs_url="https://developer.mozilla.org/en-US/docs/Web/API/TextEncoder",
                ),
            ),
        ),
        CautionModuleRule(
            module="stream",
            name="Node.js streams usage",
            description="Node.js streams detected. Prefer Web Streams API for Edge compatibility.",
            message=(
                "Node.js streams module usage detected. "
                "Consider using Web Streams API for Edge compatibility."
            ),
            suggestions=(
                Suggestion(
                    message="Use ReadableStream, WritableStream, and TransformStream",
                    docs_url="https://developer.mozilla.org/en-US/docs/Web/API/Streams_API",
                ),
                Suggestion(message="For Node.js stream compatibility in Edge, consider stream adapters"),
            ),
        ),
    ]
