import pytest

from daz_content_installer.utils.formatting import format_file_size


@pytest.mark.parametrize(
    ("size", "expected"),
    [
        (0, "0 B"),
        (1023, "1023 B"),
        (1024, "1.0 KB"),
        (1536, "1.5 KB"),
        (10 * 1024**2, "10.0 MB"),
        (3 * 1024**4, "3.0 TB"),
        (2048 * 1024**4, "2048.0 TB"),
    ],
)
def test_format_file_size(size, expected):
    assert format_file_size(size) == expected
