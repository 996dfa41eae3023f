from daz_content_installer.models.enums import AssetCategory
from daz_content_installer.services.path_classifier import (
    classify_path,
    classify_paths,
    classify_segment,
    resolve_category,
)


class TestClassifySegment:
    def test_keyword_is_substring_match(self):
        result = classify_segment("Wardrobe_Accessories")
        assert result.categories == {AssetCategory.CLOTHING}
        assert result.keywords == {"wardrobe"}

    def test_no_match(self):
        result = classify_segment("Genesis 9")
        assert result.categories == set()
        assert result.keywords == set()

    def test_multiple_keywords_in_one_segment(self):
        result = classify_segment("hair_materials")
        assert result.categories == {AssetCategory.HAIR, AssetCategory.MATERIALS}


class TestClassifyPath:
    def test_unions_all_segments(self):
        result = classify_path("People/Genesis 8 Female/Characters/Eve/Poses/stand.duf")
        assert result.categories == {AssetCategory.CHARACTER, AssetCategory.POSES}
        assert result.keywords == {"characters", "poses"}

    def test_backslash_paths(self):
        result = classify_path("Runtime\\Textures\\skin.jpg")
        assert result.categories == {AssetCategory.TEXTURES}

    def test_order_independent(self):
        paths = ["Content/hair/style.duf", "props/table.duf", "Runtime/textures/a.png"]
        forward = classify_paths(paths)
        backward = classify_paths(reversed(paths))
        assert forward.categories == backward.categories
        assert forward.keywords == backward.keywords


class TestResolveCategory:
    def test_empty_is_unknown(self):
        assert resolve_category(set()) is AssetCategory.UNKNOWN

    def test_single_category(self):
        assert resolve_category({AssetCategory.PROPS}) is AssetCategory.PROPS

    def test_several_categories_are_mixed(self):
        assert resolve_category({AssetCategory.PROPS, AssetCategory.HAIR}) is AssetCategory.MIXED

    def test_unknown_prior_is_ignored(self):
        assert resolve_category({AssetCategory.HAIR}, AssetCategory.UNKNOWN) is AssetCategory.HAIR

    def test_same_prior_stays(self):
        assert resolve_category({AssetCategory.HAIR}, AssetCategory.HAIR) is AssetCategory.HAIR

    def test_different_prior_is_mixed(self):
        assert resolve_category({AssetCategory.HAIR}, AssetCategory.PROPS) is AssetCategory.MIXED

    def test_prior_kept_without_detection(self):
        assert resolve_category(set(), AssetCategory.PROPS) is AssetCategory.PROPS
