"""FairShare gateway - credential/token service fused with an AI bill-analysis proxy.

The service is intentionally small:
- Users register and log in with a username/password (PBKDF2 verifiers).
- Login returns a self-contained signed token; there is no session table.
- Authenticated clients send a bill photo and pick an AI provider; every
  provider's answer is normalized into one BillExtractionResult.

See DESIGN.md for the module map.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
