"""
zkmind - Proof-bound code-breaking game engine

A deterministic, rules-driven engine for a two-party secret-guessing game.
The codemaker commits to a secret code, the codebreaker guesses, and every
exact/partial answer must carry a zero-knowledge proof bound to the
commitment. The engine provides:
- Canonical public-input encoding
- Proof artifact parsing and the verification gate
- The session state machine (commit, guess, feedback)
- Session persistence and match settlement through capability ports
"""

__version__ = "0.1.0"
