"""
Services layer - business logic for issue intake, triage and user trust.

DESIGN PRINCIPLE:
- Services contain business logic, NOT routes
- AI failures are absorbed by the analyzers and never reach the routes
- Services receive the Firestore client explicitly
"""
