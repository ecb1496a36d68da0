"""auth/ -- Credential hashing, bearer tokens and request gates for LearnLite.

Layer rule: auth/ imports only stdlib + third-party libraries.
It does NOT import from api/ or core/. Configuration arrives as plain values
(key, ttl, work factor) built by core.config.Settings.auth_config().
api/ imports from auth/, not the other way around.
"""
