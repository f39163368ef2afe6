"""assetvault API routers."""
