"""Tests for nidaqdo.samples (sample variants and classification)."""

from __future__ import annotations

import numpy as np
import pytest

from nidaqdo.errors import UnsupportedFormatError
from nidaqdo.samples import BytePort, Depth, Matrix, Scalar, Vector, to_sample


class TestDepth:
    @pytest.mark.parametrize(
        "dtype, depth",
        [
            (np.uint8, Depth.U8),
            (np.int8, Depth.S8),
            (np.uint16, Depth.U16),
            (np.int16, Depth.S16),
            (np.int32, Depth.S32),
            (np.float32, Depth.F32),
            (np.float64, Depth.F64),
        ],
    )
    def test_from_dtype(self, dtype, depth):
        assert Depth.from_dtype(dtype) is depth
        assert depth.dtype == np.dtype(dtype)

    def test_unknown_dtype_rejected(self):
        with pytest.raises(UnsupportedFormatError, match="complex128"):
            Depth.from_dtype(np.complex128)


class TestVariants:
    def test_scalar_coerces_to_bool(self):
        assert Scalar(1).value is True

    def test_vector_coerces_to_tuple_of_bool(self):
        assert Vector([1, 0, True]).values == (True, False, True)

    def test_byte_port_range_checked(self):
        assert BytePort([0, 255]).values == (0, 255)
        with pytest.raises(UnsupportedFormatError, match="256"):
            BytePort([256])

    def test_matrix_shape_and_depth(self):
        m = Matrix(np.zeros((3, 4), dtype=np.int16))
        assert (m.rows, m.cols) == (3, 4)
        assert m.depth is Depth.S16

    def test_matrix_explicit_depth_kept(self):
        m = Matrix(np.zeros((2, 2), dtype=np.int32), Depth.U8)
        assert m.depth is Depth.U8

    def test_matrix_requires_two_dimensions(self):
        with pytest.raises(UnsupportedFormatError, match="2-D"):
            Matrix(np.zeros(4, dtype=np.uint8))

    def test_matrix_holds_reference(self):
        data = np.zeros((2, 3), dtype=np.uint8)
        assert Matrix(data).data is data


class TestToSample:
    """Every incoming value is classified once into a variant."""

    def test_bool(self):
        assert to_sample(True) == Scalar(True)
        assert to_sample(np.bool_(False)) == Scalar(False)

    def test_variants_pass_through(self):
        v = Vector((True,))
        assert to_sample(v) is v

    def test_list_of_bools_is_vector(self):
        assert to_sample([True, False, True]) == Vector((True, False, True))

    def test_bool_array_is_vector(self):
        assert to_sample(np.array([False, True])) == Vector((False, True))

    def test_bytes_are_byte_port(self):
        assert to_sample(b"\x01\xff") == BytePort((1, 255))
        assert to_sample(bytearray([7])) == BytePort((7,))

    def test_uint8_array_is_byte_port(self):
        assert to_sample(np.array([3, 4], dtype=np.uint8)) == BytePort((3, 4))

    def test_other_1d_array_rejected(self):
        with pytest.raises(UnsupportedFormatError, match="1-D"):
            to_sample(np.array([1.0, 2.0]))

    def test_2d_numeric_array_is_matrix(self):
        data = np.arange(6, dtype=np.uint16).reshape(2, 3)
        sample = to_sample(data)
        assert isinstance(sample, Matrix)
        assert sample.depth is Depth.U16
        assert sample.data is data

    def test_2d_float_array_is_matrix_with_float_depth(self):
        sample = to_sample(np.zeros((2, 2)))
        assert sample.depth is Depth.F64

    def test_2d_bool_array_becomes_u8_without_touching_input(self):
        data = np.array([[True, False], [False, True]])
        sample = to_sample(data)
        assert sample.depth is Depth.U8
        np.testing.assert_array_equal(sample.data, [[1, 0], [0, 1]])
        assert data.dtype == np.bool_

    def test_nested_bool_list_is_u8_matrix(self):
        sample = to_sample([[True, False, True], [False, False, True]])
        assert isinstance(sample, Matrix)
        assert sample.depth is Depth.U8
        assert (sample.rows, sample.cols) == (2, 3)

    def test_3d_array_rejected(self):
        with pytest.raises(UnsupportedFormatError, match="3-D"):
            to_sample(np.zeros((2, 2, 2), dtype=np.uint8))

    @pytest.mark.parametrize("value", ["high", 1.5, None, object()])
    def test_unsupported_types_rejected(self, value):
        with pytest.raises(UnsupportedFormatError):
            to_sample(value)
