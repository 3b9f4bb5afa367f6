"""HTTP surface: readiness gate and routers."""
