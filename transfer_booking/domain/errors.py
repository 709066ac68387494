"""
Error taxonomy.

* Validation problems are never raised: they surface as step-gate
  failure reasons (see ``wizard.gate_failures``).
* ``LookupFailure`` subclasses are soft failures: the caller keeps the
  previous values and offers a retry.
* ``HydrationFailure`` means a handoff payload could not be used; the
  wizard starts from defaults.
"""


class LookupFailure(Exception):
    """A collaborator lookup did not produce a usable answer."""


class RouteUnavailable(LookupFailure):
    """The route provider reports no drivable route between the endpoints."""


class LookupFailed(LookupFailure):
    """Transport or provider error while talking to a collaborator."""


class HydrationFailure(Exception):
    """A handoff payload is malformed or cannot be parsed."""
