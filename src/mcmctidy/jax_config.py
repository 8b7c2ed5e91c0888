"""
JAX Configuration - MUST be imported before any JAX imports.

This module sets environment variables for JAX configuration including:
- 64-bit floats, so the jax summary backend matches numpy quantiles
- Quieter XLA C++ logging
"""
import os

# --- DOUBLE PRECISION ---
# Summary statistics are reported as float64; without x64 JAX silently
# downcasts the draws to float32.
os.environ.setdefault("JAX_ENABLE_X64", "true")

# Suppress CUDA/XLA C++ warnings (GPU interconnect, NUMA, cuDNN factories)
os.environ.setdefault("TF_CPP_MIN_LOG_LEVEL", "2")
