import re

import pytest

from blog_api.app.core.exceptions import InvalidPostIdError, ValidationError
from blog_api.app.schemas.post import PostListOptions, PostRead, SortField, SortOrder

MISSING_ID = "0" * 32


def ids(posts):
    return [post.id for post in posts]


def ordered(posts, key, descending):
    # Stable: equal keys keep insertion order, like the store
    return ids(sorted(posts, key=lambda post: getattr(post, key), reverse=descending))


@pytest.mark.asyncio
class TestCreatingPosts:
    async def test_with_all_parameters_should_succeed(self, service, posts):
        data = {
            "title": "Connecting to SQLite!",
            "author": "Lila Adams",
            "contents": "This is a post.",
            "tags": ["sqlite", "python"],
        }
        created = await service.create_post(data)

        assert isinstance(created, PostRead)
        assert re.fullmatch(r"[0-9a-f]{32}", created.id)

        stored = posts.find_by_id(created.id)
        assert {key: stored[key] for key in data} == data
        assert created.created_at.tzinfo is not None

    async def test_timestamps_are_equal_on_creation(self, service):
        created = await service.create_post({"title": "Only a title"})
        assert created.created_at == created.updated_at

    async def test_with_minimal_parameters_should_succeed(self, service):
        created = await service.create_post({"title": "Only a title"})

        assert created.title == "Only a title"
        assert created.author is None
        assert created.contents is None
        assert created.tags == []

    async def test_generates_unique_ids(self, service):
        first = await service.create_post({"title": "First"})
        second = await service.create_post({"title": "Second"})
        assert first.id != second.id

    async def test_without_title_should_fail(self, service, posts):
        with pytest.raises(ValidationError) as exc_info:
            await service.create_post(
                {"author": "John Doe", "contents": "Welcome to my blog", "tags": ["empty"]}
            )

        assert "`title` is required" in exc_info.value.messages["title"]
        assert "`title` is required" in str(exc_info.value)
        assert len(posts.find()) == 0

    async def test_with_empty_title_should_fail(self, service, posts):
        with pytest.raises(ValidationError) as exc_info:
            await service.create_post({"title": ""})

        assert exc_info.value.messages == {"title": ["`title` is required"]}
        assert len(posts.find()) == 0

    async def test_with_invalid_tags_should_fail(self, service, posts):
        with pytest.raises(ValidationError) as exc_info:
            await service.create_post({"title": "Tagged", "tags": "not-a-list"})

        assert "tags" in exc_info.value.messages
        assert len(posts.find()) == 0


@pytest.mark.asyncio
class TestListingPosts:
    async def test_empty_store_returns_empty_list(self, service):
        assert await service.list_all_posts() == []

    async def test_should_return_all_posts(self, service, sample_posts):
        listed = await service.list_all_posts()
        assert len(listed) == len(sample_posts)

    async def test_sorted_by_creation_date_descending_by_default(self, service, sample_posts):
        listed = await service.list_all_posts()
        assert ids(listed) == ordered(sample_posts, "created_at", descending=True)

    async def test_takes_provided_sorting_options_into_account(self, service, sample_posts):
        listed = await service.list_all_posts({"sortBy": "updatedAt", "sortOrder": "ascending"})
        assert ids(listed) == ordered(sample_posts, "updated_at", descending=False)

    async def test_accepts_options_model(self, service, sample_posts):
        options = PostListOptions(sort_by=SortField.created_at, sort_order=SortOrder.ascending)
        listed = await service.list_all_posts(options)
        assert ids(listed) == ordered(sample_posts, "created_at", descending=False)

    async def test_rejects_unknown_sort_field(self, service, sample_posts):
        with pytest.raises(ValidationError) as exc_info:
            await service.list_all_posts({"sortBy": "title"})
        assert "sortBy" in exc_info.value.messages

    async def test_should_filter_posts_by_author(self, service, sample_posts):
        listed = await service.list_posts_by_author("Naa Gyamfi")
        assert len(listed) == 3
        assert all(post.author == "Naa Gyamfi" for post in listed)

    async def test_author_filter_is_case_sensitive(self, service, sample_posts):
        assert await service.list_posts_by_author("naa gyamfi") == []

    async def test_should_filter_posts_by_tag(self, service, sample_posts):
        listed = await service.list_posts_by_tag("nodejs")
        assert ids(listed) == [sample_posts[2].id]

    async def test_unknown_tag_returns_empty_list(self, service, sample_posts):
        assert await service.list_posts_by_tag("vue") == []

    async def test_filters_follow_default_sort_order(self, service):
        a = await service.create_post({"title": "A", "author": "Foo", "tags": ["x"]})
        b = await service.create_post({"title": "B", "author": "Foo", "tags": ["y"]})
        c = await service.create_post({"title": "C", "author": "Bar", "tags": ["x"]})

        by_author = await service.list_posts_by_author("Foo")
        by_tag = await service.list_posts_by_tag("x")

        assert ids(by_author) == ordered([a, b], "created_at", descending=True)
        assert ids(by_tag) == ordered([a, c], "created_at", descending=True)


@pytest.mark.asyncio
class TestGettingPosts:
    async def test_should_return_the_full_post(self, service, sample_posts):
        post = await service.get_post_by_id(sample_posts[0].id)
        assert post == sample_posts[0]

    async def test_returns_none_if_the_id_does_not_exist(self, service, sample_posts):
        assert await service.get_post_by_id(MISSING_ID) is None

    async def test_malformed_id_raises_lookup_error(self, service):
        with pytest.raises(InvalidPostIdError):
            await service.get_post_by_id("not-an-id")

        with pytest.raises(LookupError):
            await service.get_post_by_id(42)


@pytest.mark.asyncio
class TestUpdatingPosts:
    async def test_should_update_the_specified_property(self, service, posts, sample_posts):
        await service.update_post(sample_posts[0].id, {"author": "Test Author"})
        assert posts.find_by_id(sample_posts[0].id)["author"] == "Test Author"

    async def test_should_not_update_other_properties(self, service, sample_posts):
        original = sample_posts[0]
        updated = await service.update_post(original.id, {"author": "Test Author"})

        assert updated.id == original.id
        assert updated.title == "Learning Redux"
        assert updated.contents == original.contents
        assert updated.tags == original.tags
        assert updated.created_at == original.created_at

    async def test_should_update_the_updated_at_timestamp(self, service, sample_posts):
        updated = await service.update_post(sample_posts[0].id, {"author": "Test Author"})
        assert updated.updated_at > sample_posts[0].updated_at
        assert updated.updated_at >= updated.created_at

    async def test_repeated_updates_keep_moving_updated_at_forward(self, service, sample_posts):
        first = await service.update_post(sample_posts[0].id, {"title": "One"})
        second = await service.update_post(sample_posts[0].id, {"title": "Two"})
        assert second.updated_at > first.updated_at

    async def test_empty_update_only_refreshes_timestamp(self, service, sample_posts):
        updated = await service.update_post(sample_posts[1].id, {})

        assert updated.updated_at > sample_posts[1].updated_at
        assert updated.model_dump(exclude={"updated_at"}) == sample_posts[1].model_dump(
            exclude={"updated_at"}
        )

    async def test_null_tags_clear_the_tags(self, service, sample_posts):
        updated = await service.update_post(sample_posts[2].id, {"tags": None})
        assert updated.tags == []

    async def test_returns_none_if_the_id_does_not_exist(self, service, posts, sample_posts):
        result = await service.update_post(MISSING_ID, {"author": "Test Author"})

        assert result is None
        assert len(posts.find()) == len(sample_posts)
        assert len(posts.find({"author": "Test Author"})) == 0

    @pytest.mark.parametrize("title", ["", None])
    async def test_title_cannot_be_cleared(self, service, sample_posts, title):
        with pytest.raises(ValidationError) as exc_info:
            await service.update_post(sample_posts[0].id, {"title": title})

        assert exc_info.value.messages == {"title": ["`title` is required"]}
        assert (await service.get_post_by_id(sample_posts[0].id)) == sample_posts[0]


@pytest.mark.asyncio
class TestDeletingPosts:
    async def test_should_remove_the_post_from_the_database(self, service, posts, sample_posts):
        result = await service.delete_post(sample_posts[0].id)

        assert result.deleted_count == 1
        assert posts.find_by_id(sample_posts[0].id) is None
        assert await service.get_post_by_id(sample_posts[0].id) is None

    async def test_reports_zero_if_the_id_does_not_exist(self, service, posts, sample_posts):
        result = await service.delete_post(MISSING_ID)

        assert result.deleted_count == 0
        assert len(posts.find()) == len(sample_posts)

    async def test_result_serialises_with_camel_case(self, service, sample_posts):
        result = await service.delete_post(sample_posts[0].id)
        assert result.model_dump(by_alias=True) == {"deletedCount": 1}
