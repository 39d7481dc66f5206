"""Cross-cutting helpers: request context, cancellation, enums, telemetry."""
