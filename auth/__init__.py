"""auth/ -- Authentication and session core for LeetShare.

TokenService (tokens.py), CredentialService (passwords.py) and
OAuthStateGuard (oauth_state.py) are independent of each other.

Layer rule: auth/ imports only stdlib + third-party libraries, plus core/
for configuration. It does NOT import from api/.
api/ imports from auth/, not the other way around.
"""
