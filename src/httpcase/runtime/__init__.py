"""Runtime layer: retry, cancellation, fan-out and observability."""
