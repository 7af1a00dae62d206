"""
NASA gateway service package for the Mission Control dashboard.

The gateway fronts the NASA Open APIs, enforcing:
- Validation: query and path parameters checked before any upstream call
- Caching: in-process TTL cache for JSON payloads and proxied images
- Rate limiting: fixed window per client IP on /api routes
- Typed upstream errors rendered as failure envelopes

Structure:
- app.main: FastAPI app, routes, and middleware wiring.
- app.adapters: HTTP client for api.nasa.gov.
- app.caching: TTL cache and its sweeper.
- app.domain: APOD, Mars, NeoWs and EPIC resources plus the success envelope.
- app.proxy: Allow-listed image proxy.
- app.ratelimit: Fixed-window limiter.
- app.validation: Parameter validators and static catalogs.
"""
