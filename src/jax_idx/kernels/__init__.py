"""Array-processing kernels built on the comprehension engine.

Each kernel is a pure function: validate operand shapes, infer the output
domain, evaluate one or more comprehensions.

    matvec, sgemm, fc_relu, transposed_matmul, transposed_batch_matmul,
    outer_product_matmul  -> sum over a shared axis
    conv1d, conv2d, strided_conv2d, grouped_conv2d -> sum over a window
    max_pool2d -> max over a window
    gather, lut_embedding, dual_lut_embedding -> indirect lookups
"""

from jax_idx.gather import gather
from jax_idx.kernels.conv import (
    conv1d,
    conv2d,
    grouped_conv2d,
    max_pool2d,
    strided_conv2d,
)
from jax_idx.kernels.embedding import dual_lut_embedding, lut_embedding
from jax_idx.kernels.linalg import (
    fc_relu,
    matvec,
    outer_product_matmul,
    sgemm,
    transposed_batch_matmul,
    transposed_matmul,
)

__all__ = [
    "matvec",
    "sgemm",
    "fc_relu",
    "transposed_matmul",
    "transposed_batch_matmul",
    "outer_product_matmul",
    "conv1d",
    "conv2d",
    "strided_conv2d",
    "grouped_conv2d",
    "max_pool2d",
    "gather",
    "lut_embedding",
    "dual_lut_embedding",
]
