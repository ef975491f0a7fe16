"""InterviewGuard: on-device integrity monitor for remote interviews."""

__version__ = "0.1.0"
