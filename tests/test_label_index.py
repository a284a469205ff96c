import pytest

from data_preprocessing import LabeledInterval, ParseError, parse_activity_labels, parse_label_index


def write(tmp_path, text, name="labels.txt"):
    path = tmp_path / name
    path.write_text(text)
    return path


def test_parse_label_index_groups_by_recording(tmp_path):
    path = write(tmp_path, "1 1 5 250 1232\n1 1 7 1233 1392\n2 1 5 251 1227\n3 2 5 100 200\n")
    index = parse_label_index(path)

    assert len(index) == 4
    assert index.recordings() == [(1, 1), (2, 1), (3, 2)]
    assert index.intervals_for(1, 1) == [
        LabeledInterval(1, 1, 5, 250, 1232),
        LabeledInterval(1, 1, 7, 1233, 1392),
    ]
    assert index.intervals_for(9, 9) == []
    assert index.subjects() == [1, 2]


def test_interval_length_is_inclusive():
    assert LabeledInterval(1, 1, 7, 11, 50).length == 40
    assert LabeledInterval(1, 1, 7, 5, 5).length == 1


@pytest.mark.parametrize("text", [
    "1 1 5 250\n",
    "1 1 5 250 1232\n1 1 5 250\n",
    "1 1 5 250 1232\n1 1 5 250 1232 7\n",
    "1 1 walk 250 1232\n",
    "1 1 5 250.5 1232\n",
])
def test_malformed_rows_raise_parse_error(tmp_path, text):
    with pytest.raises(ParseError):
        parse_label_index(write(tmp_path, text))


def test_start_after_end_is_rejected(tmp_path):
    path = write(tmp_path, "1 1 5 10 20\n1 1 5 30 29\n")
    with pytest.raises(ParseError) as excinfo:
        parse_label_index(path)
    assert excinfo.value.line == 2


def test_start_equal_to_end_is_accepted(tmp_path):
    index = parse_label_index(write(tmp_path, "1 1 5 30 30\n"))
    assert index.intervals_for(1, 1)[0].length == 1


def test_parse_activity_labels(tmp_path):
    path = write(tmp_path, "1 WALKING\n7 STAND_TO_SIT\n", "activity_labels.txt")
    assert parse_activity_labels(path) == {1: "WALKING", 7: "STAND_TO_SIT"}


def test_activity_labels_with_bad_id(tmp_path):
    path = write(tmp_path, "one WALKING\n", "activity_labels.txt")
    with pytest.raises(ParseError):
        parse_activity_labels(path)
