"""
Cache Test Server — large cacheable images for browser/proxy cache testing

- Generates a 10000x10000 PNG per request, deterministic per seed (request counter)
- Serves /cache-test, /cache-test/no-cache, /cache-test/max-age/{seconds}
  with the matching Cache-Control / ETag / Last-Modified / Pragma / Expires headers
- /status (JSON) and / (HTML) describe the server and its request count
"""
