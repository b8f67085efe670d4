import pytest

from cloudhub.utils import format_file_size


@pytest.mark.parametrize(
    "size,expected",
    [
        (None, "0 Bytes"),
        (0, "0 Bytes"),
        (512, "512 Bytes"),
        (1024, "1 KB"),
        (1536, "1.5 KB"),
        (1048576, "1 MB"),
        (5 * 1024**3, "5 GB"),
        (3 * 1024**5, "3072 TB"),
    ],
)
def test_format_file_size(size, expected):
    assert format_file_size(size) == expected
