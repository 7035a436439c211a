import tarfile
from pathlib import Path

import pytest
import yaml

from procman import api
from procman.errors import ImageError, ProcStartError
from procman.models import Image


def _seed_image(root: Path, image_id="abcd1234", name="test-img", tag="0.0.5"):
    conf_dir = root / "staging" / image_id / "rootfs" / "etc" / "procman"
    conf_dir.mkdir(parents=True)
    (conf_dir / "job.yaml").write_text(
        yaml.safe_dump({"name": "job", "command": ["true"]}), encoding="utf-8"
    )
    image_dir = root / "img" / image_id
    image_dir.mkdir(parents=True)
    with tarfile.open(image_dir / "img.tar.gz", "w:gz") as archive:
        archive.add(conf_dir.parents[1], arcname="rootfs")
    image = Image(
        id=image_id, name=name, img_path=str(image_dir), tag=tag, created="2024-01-01 00:00:00"
    )
    (image_dir / "img.yaml").write_text(yaml.safe_dump(image.to_dict()), encoding="utf-8")
    return image


def test_get_then_delete_image(tmp_path):
    image = _seed_image(tmp_path)

    found = api.get_image("", "test-img", "0.0.5", str(tmp_path))
    assert found.id == image.id
    assert found.name == "test-img"
    assert found.tag == "0.0.5"

    api.del_image(found.id, "", "", str(tmp_path))
    assert not (tmp_path / "img" / image.id).exists()
    with pytest.raises(ImageError):
        api.get_image(found.id, "", "", str(tmp_path))


def test_get_image_by_id(tmp_path):
    image = _seed_image(tmp_path)
    found = api.get_image(image.id, "", "", str(tmp_path))
    assert found.img_path == image.img_path
    assert found.created == image.created


def test_get_image_unknown_name(tmp_path):
    _seed_image(tmp_path)
    with pytest.raises(ImageError) as info:
        api.get_image("", "test-img", "1.0.0", str(tmp_path))
    assert str(info.value) == "not found"


def test_get_image_unknown_id(tmp_path):
    with pytest.raises(ImageError) as info:
        api.get_image("ffffffff", "", "", str(tmp_path))
    assert "error statfile" in str(info.value)


def test_del_image_by_name_and_tag(tmp_path):
    image = _seed_image(tmp_path)
    api.del_image("", "test-img", "0.0.5", str(tmp_path))
    assert not (tmp_path / "img" / image.id).exists()


def test_del_image_not_found(tmp_path):
    with pytest.raises(ImageError) as info:
        api.del_image("", "test-img", "0.0.5", str(tmp_path))
    assert str(info.value) == "not found"


def test_list_images(tmp_path):
    _seed_image(tmp_path, image_id="aaaa0001", tag="0.0.1")
    _seed_image(tmp_path, image_id="aaaa0002", tag="0.0.2")
    listed = api.list_images(str(tmp_path))
    assert [(info.id, info.tag) for info in listed] == [
        ("aaaa0001", "0.0.1"),
        ("aaaa0002", "0.0.2"),
    ]


def test_list_images_empty_store(tmp_path):
    assert api.list_images(str(tmp_path)) == []


def test_build_image_existing(tmp_path):
    image = _seed_image(tmp_path)
    with pytest.raises(ImageError) as info:
        api.build_image("test-img", "0.0.5", str(tmp_path / "ctx"), str(tmp_path))
    assert str(info.value) == "image already exists"
    assert info.value.image.id == image.id


def test_build_image_missing_spec(tmp_path):
    context = tmp_path / "ctx"
    context.mkdir()
    with pytest.raises(ImageError) as info:
        api.build_image("test-img", "0.0.5", str(context), str(tmp_path / "store"))
    assert str(info.value).startswith("error building:")
    assert "ImageSpec.yaml" in str(info.value)


def test_start_process(tmp_path):
    _seed_image(tmp_path)
    process = api.start_process("test-proc", "test-img", "0.0.5", {"A": "1"}, str(tmp_path))
    assert process.name == "test-proc"
    assert process.env["A"] == "1"
    assert process.job.command == ["true"]


def test_start_process_missing_image(tmp_path):
    with pytest.raises(ProcStartError):
        api.start_process("test-proc", "test-img", "0.0.5", {}, str(tmp_path))