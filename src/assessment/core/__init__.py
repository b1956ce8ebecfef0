"""Core business logic module.

Modules:
- questions: Question types and answer-shape classification
- quiz: Quiz model, settings and presentation order
- scoring: Per-question scoring rules
- aggregator: Totals, point redistribution and per-question results
- attempt_gate: Max-attempts enforcement
- submissions: Submission state machine and student visibility
- invitations: Invitation state machine
- manual_grading: Teacher override reconciliation
- question_import: Import of generated question payloads
- reports: Per-student summaries, history and statistics
- notifications: Invite and submission notifications
- service: Orchestration against the store and notifier
"""

__all__ = [
    "questions",
    "quiz",
    "scoring",
    "aggregator",
    "attempt_gate",
    "submissions",
    "invitations",
    "manual_grading",
    "question_import",
    "reports",
    "notifications",
    "service",
]
