"""agentdeps — host introspection and privileged execution for the installer agent."""

__version__ = "0.1.0"
