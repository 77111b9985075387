import matplotlib

# Headless backend for the plotting tests
matplotlib.use("Agg")
