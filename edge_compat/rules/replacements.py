"""Replacement recipes for packages that do not run on Edge runtimes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class Replacement:
    source: str
    target: str
    reason: str
    install_command: str
    migration_notes: Optional[str] = None
    docs_url: Optional[str] = None


REPLACEMENTS: Dict[str, Replacement] = {
    "jsonwebtoken": Replacement(
        source="jsonwebtoken",
        target="jose",
        reason="jsonwebtoken uses Node.js crypto and Buffer APIs not available in Edge runtimes",
        install_command="npm install jose",
        migration_notes="Replace jwt.sign() with new SignJWT() and jwt.verify() with jwtVerify()",
        docs_url="https://github.com/panva/jose",
    ),
    "node-fetch": Replacement(
        source="node-fetch",
        target="fetch (global)",
        reason="Edge runtimes have native fetch() support",
        install_command="Remove node-fetch dependency",
        migration_notes='Replace require("node-fetch") with native fetch()',
        docs_url="https://developer.mozilla.org/en-US/docs/Web/API/Fetch_API",
    ),
    "axios": Replacement(
        source="axios",
        target="fetch (global) or ky",
        reason="axios uses Node.js adapters not available in Edge runtimes",
        install_command="npm install ky",
        migration_notes="Use native fetch() or ky for a familiar API",
        docs_url="https://github.com/sindresorhus/ky",
    ),
    "pg": Replacement(
        source="pg",
        target="@neondatabase/serverless",
        reason="pg requires TCP sockets not available in Edge runtimes",
        install_command="npm install @neondatabase/serverless",
        migration_notes="Use Neon serverless driver with HTTP connections",
        docs_url="https://neon.tech/docs/serverless/serverless-driver",
    ),
    "mysql2": Replacement(
        source="mysql2",
        target="@planetscale/database",
        reason="mysql2 requires TCP sockets not available in Edge runtimes",
        install_command="npm install @planetscale/database",
        migration_notes="Use PlanetScale serverless driver with HTTP connections",
        docs_url="https://github.com/planetscale/database-js",
    ),
    "mysql": Replacement(
        source="mysql",
        target="@planetscale/database",
        reason="mysql requires TCP sockets not available in Edge runtimes",
        install_command="npm install @planetscale/database",
        migration_notes="Use PlanetScale serverless driver with HTTP connections",
        docs_url="https://github.com/planetscale/database-js",
    ),
    "ws": Replacement(
        source="ws",
        target="WebSocket (global)",
        reason="ws uses Node.js net module not available in Edge runtimes",
        install_command="Use native WebSocket API",
        migration_notes="Replace ws.WebSocket with native WebSocket",
        docs_url="https://developer.mozilla.org/en-US/docs/Web/API/WebSocket",
    ),
    "form-data": Replacement(
        source="form-data",
        target="FormData (global)",
        reason="form-data uses Node.js streams not available in Edge runtimes",
        install_command="Use native FormData API",
        migration_notes="Replace form-data with native FormData",
        docs_url="https://developer.mozilla.org/en-US/docs/Web/API/FormData",
    ),
    "uuid": Replacement(
        source="uuid",
        target="crypto.randomUUID()",
        reason="uuid can be replaced with native Web Crypto API",
        install_command="Remove uuid dependency",
        migration_notes="Replace uuidv4() with crypto.randomUUID()",
        docs_url="https://developer.mozilla.org/en-US/docs/Web/API/Crypto/randomUUID",
    ),
    "dotenv": Replacement(
        source="dotenv",
        target="Build-time environment variables",
        reason="dotenv loads .env files at runtime, not suitable for Edge",
        install_command="Remove dotenv dependency",
        migration_notes="Use build-time environment variables (process.env is injected at build time)",
        docs_url="https://vercel.com/docs/concepts/projects/environment-variables",
    ),
    "bcrypt": Replacement(
        source="bcrypt",
        target="bcryptjs",
        reason="bcrypt uses native bindings not available in Edge runtimes",
        install_command="npm install bcryptjs",
        migration_notes="Replace bcrypt with bcryptjs (pure JavaScript implementation)",
        docs_url="https://github.com/dcodeIO/bcrypt.js",
    ),
    "firebase-admin": Replacement(
        source="firebase-admin",
        target="Firebase REST API or Edge-compatible SDK",
        reason="firebase-admin uses Node.js APIs not available in Edge runtimes",
        install_command="Use Firebase REST API or firebase/auth package",
        migration_notes="Use Firebase Client SDK or REST API for Edge functions",
        docs_url="https://firebase.google.com/docs/reference/rest/auth",
    ),
    "sharp": Replacement(
        source="sharp",
        target="Edge-compatible image service",
        reason="sharp uses native bindings not available in Edge runtimes",
        install_command="Use Cloudflare Images or Vercel Image Optimization",
        migration_notes="Use platform-specific image optimization services",
        docs_url="https://vercel.com/docs/concepts/image-optimization",
    ),
    "puppeteer": Replacement(
        source="puppeteer",
        target="Browser automation service",
        reason="puppeteer requires Chrome browser not available in Edge runtimes",
        install_command="Use Browserless, Puppeteer on server routes, or screenshot APIs",
        migration_notes="Move to server-side API routes or use external services",
        docs_url="https://www.browserless.io/",
    ),
    "prisma": Replacement(
        source="prisma",
        target="@prisma/client/edge or Prisma Data Proxy",
        reason="Prisma Client uses connection pooling that may not work in Edge",
        install_command="npm install @prisma/client",
        migration_notes="Use Prisma Data Proxy or Prisma Accelerate for Edge",
        docs_url="https://www.prisma.io/docs/guides/deployment/edge/overview",
    ),
}


def get_replacement(package_name: str) -> Optional[Replacement]:
    return REPLACEMENTS.get(package_name)
