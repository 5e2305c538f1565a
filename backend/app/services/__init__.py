"""
Engine services.

Pairing, table assignment and standings tallies are pure functions over
plain inputs. Round lifecycle and the orchestrator work on a Session.
Nothing here knows about HTTP.
"""
