"""Numeric tolerances and limits shared by kernels and host code."""

# Smallest accepted ray parameter; also the offset for scattered ray origins
EPSILON = 1e-4

# Valid intersection interval (T_MIN, T_MAX)
T_MIN = EPSILON
T_MAX = 1e10

# Offset applied to scattered ray origins along the surface normal
RAY_EPSILON = EPSILON

# |d . n| below this is treated as a ray parallel to a plane
PARALLEL_EPSILON = 1e-8

# Candidates whose t differ by less than this count as a tie
TIE_EPSILON = EPSILON

# Host-side threshold for zero-length vectors
HOST_EPSILON = 1e-8

# Padding added around bounded primitives when the scene box grows
BOUND_PADDING = 1e-3

# Recursion levels compiled into the render kernels for any trace depth up to this
UNROLL_DEPTH = 8
