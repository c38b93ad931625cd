"""
Unit Tests for links, blog, contact and community board endpoints
"""
import pytest
from httpx import AsyncClient


class TestCommunityLinks:

    @pytest.mark.asyncio
    async def test_admin_crud(self, client: AsyncClient, admin_auth_headers):
        created = await client.post('/api/v1/community-links', headers=admin_auth_headers, json={
            'name': 'CSC 200L WhatsApp', 'url': 'https://chat.whatsapp.com/abc', 'type': 'whatsapp',
        })
        assert created.status_code == 201
        link_id = created.json()['id']

        updated = await client.put(f'/api/v1/community-links/{link_id}', headers=admin_auth_headers,
                                   json={'name': 'CSC 200L Group'})
        assert updated.json()['name'] == 'CSC 200L Group'

        deleted = await client.delete(f'/api/v1/community-links/{link_id}', headers=admin_auth_headers)
        assert deleted.status_code == 200
        assert (await client.get('/api/v1/community-links')).json() == []

    @pytest.mark.asyncio
    async def test_filter_by_type(self, client: AsyncClient, admin_auth_headers):
        for name, link_type in [('WA', 'whatsapp'), ('TG', 'telegram')]:
            await client.post('/api/v1/community-links', headers=admin_auth_headers, json={
                'name': name, 'url': f'https://example.com/{name}', 'type': link_type,
            })

        response = await client.get('/api/v1/community-links', params={'type': 'telegram'})
        assert [l['name'] for l in response.json()] == ['TG']

    @pytest.mark.asyncio
    async def test_student_cannot_create(self, client: AsyncClient, auth_headers):
        response = await client.post('/api/v1/community-links', headers=auth_headers, json={
            'name': 'Group', 'url': 'https://example.com',
        })
        assert response.status_code == 403


class TestCustomLinks:

    @pytest.mark.asyncio
    async def test_public_list_hides_inactive(self, client: AsyncClient, admin_auth_headers):
        await client.post('/api/v1/custom-links', headers=admin_auth_headers, json={
            'name': 'Portal', 'url': 'https://portal.example.com', 'category': 'navbar',
        })
        await client.post('/api/v1/custom-links', headers=admin_auth_headers, json={
            'name': 'Old portal', 'url': 'https://old.example.com', 'category': 'navbar', 'is_active': False,
        })

        public = await client.get('/api/v1/custom-links')
        everything = await client.get('/api/v1/custom-links/all', headers=admin_auth_headers)

        assert [l['name'] for l in public.json()] == ['Portal']
        assert len(everything.json()) == 2


class TestBlog:

    @pytest.mark.asyncio
    async def test_drafts_are_hidden(self, client: AsyncClient, admin_auth_headers, admin_user):
        draft = (await client.post('/api/v1/blogs', headers=admin_auth_headers, json={
            'title': 'Draft post', 'content': 'Not yet',
        })).json()
        published = (await client.post('/api/v1/blogs', headers=admin_auth_headers, json={
            'title': 'Exam tips', 'content': 'Sleep early', 'published': True,
        })).json()

        listing = await client.get('/api/v1/blogs')
        assert [p['title'] for p in listing.json()['items']] == ['Exam tips']
        assert published['author'] == admin_user.full_name
        assert (await client.get(f"/api/v1/blogs/{draft['id']}")).status_code == 404

        admin_listing = await client.get('/api/v1/blogs/all', headers=admin_auth_headers)
        assert admin_listing.json()['total'] == 2

    @pytest.mark.asyncio
    async def test_publish_draft(self, client: AsyncClient, admin_auth_headers):
        draft = (await client.post('/api/v1/blogs', headers=admin_auth_headers, json={
            'title': 'Draft post', 'content': 'Soon',
        })).json()

        await client.put(f"/api/v1/blogs/{draft['id']}", headers=admin_auth_headers, json={'published': True})

        assert (await client.get(f"/api/v1/blogs/{draft['id']}")).status_code == 200


class TestContact:

    @pytest.mark.asyncio
    async def test_anyone_can_submit(self, client: AsyncClient, admin_auth_headers):
        response = await client.post('/api/v1/contact', json={
            'name': 'Chidi', 'email': 'chidi@example.com', 'message': 'My timetable is wrong',
        })
        assert response.status_code == 201
        assert response.json()['status'] == 'new'

        inbox = await client.get('/api/v1/contact', headers=admin_auth_headers)
        assert len(inbox.json()) == 1

    @pytest.mark.asyncio
    async def test_mark_read(self, client: AsyncClient, admin_auth_headers):
        message = (await client.post('/api/v1/contact', json={
            'name': 'Chidi', 'email': 'chidi@example.com', 'message': 'Hello there',
        })).json()

        response = await client.patch(f"/api/v1/contact/{message['id']}", headers=admin_auth_headers,
                                      json={'status': 'read'})
        assert response.json()['status'] == 'read'

    @pytest.mark.asyncio
    async def test_inbox_is_admin_only(self, client: AsyncClient, auth_headers):
        assert (await client.get('/api/v1/contact', headers=auth_headers)).status_code == 403


class TestCommunityBoard:

    @pytest.mark.asyncio
    async def test_post_and_reply(self, client: AsyncClient, auth_headers, test_user):
        post = await client.post('/api/v1/community/messages', headers=auth_headers, json={
            'content': 'Who has past questions for CSC 201?', 'topic': '#CSC201',
        })
        assert post.status_code == 201
        root = post.json()
        assert root['topic'] == 'csc201'
        assert root['author']['id'] == str(test_user.id)

        reply = (await client.post(f"/api/v1/community/messages/{root['id']}/replies", headers=auth_headers,
                                   json={'content': 'Check the library'})).json()
        nested = (await client.post(f"/api/v1/community/messages/{reply['id']}/replies", headers=auth_headers,
                                    json={'content': 'Thanks'})).json()

        assert nested['parent_id'] == root['id']
        assert nested['topic'] == 'csc201'

        thread = await client.get(f"/api/v1/community/messages/{reply['id']}", headers=auth_headers)
        assert thread.json()['id'] == root['id']
        assert thread.json()['reply_count'] == 2

        listing = await client.get('/api/v1/community/messages', headers=auth_headers)
        assert listing.json()['total'] == 1
        assert listing.json()['items'][0]['reply_count'] == 2

    @pytest.mark.asyncio
    async def test_anonymous_post_hides_author(self, client: AsyncClient, auth_headers, moderator_auth_headers):
        post = (await client.post('/api/v1/community/messages', headers=auth_headers, json={
            'content': 'Confession', 'is_anonymous': True,
        })).json()

        assert post['author'] is None
        thread = await client.get(f"/api/v1/community/messages/{post['id']}", headers=moderator_auth_headers)
        assert thread.json()['author'] is None

    @pytest.mark.asyncio
    async def test_only_author_edits(self, client: AsyncClient, auth_headers, moderator_auth_headers):
        post = (await client.post('/api/v1/community/messages', headers=auth_headers,
                                  json={'content': 'Original'})).json()

        denied = await client.put(f"/api/v1/community/messages/{post['id']}", headers=moderator_auth_headers,
                                  json={'content': 'Hijacked'})
        assert denied.status_code == 403

        edited = await client.put(f"/api/v1/community/messages/{post['id']}", headers=auth_headers,
                                  json={'content': 'Edited'})
        assert edited.json()['content'] == 'Edited'
        assert edited.json()['edited_at'] is not None

    @pytest.mark.asyncio
    async def test_staff_can_delete_and_pin(self, client: AsyncClient, make_user, headers_for,
                                            moderator_auth_headers):
        author = await make_user()
        other = await make_user()
        first = (await client.post('/api/v1/community/messages', headers=headers_for(author),
                                   json={'content': 'First'})).json()
        second = (await client.post('/api/v1/community/messages', headers=headers_for(author),
                                    json={'content': 'Second'})).json()

        assert (await client.delete(f"/api/v1/community/messages/{first['id']}",
                                    headers=headers_for(other))).status_code == 403
        assert (await client.post(f"/api/v1/community/messages/{second['id']}/pin",
                                  headers=headers_for(other))).status_code == 403

        pinned = await client.post(f"/api/v1/community/messages/{second['id']}/pin", headers=moderator_auth_headers)
        assert pinned.json()['is_pinned'] is True

        removed = await client.delete(f"/api/v1/community/messages/{first['id']}", headers=moderator_auth_headers)
        assert removed.status_code == 200

    @pytest.mark.asyncio
    async def test_pinned_first(self, client: AsyncClient, auth_headers, moderator_auth_headers):
        old = (await client.post('/api/v1/community/messages', headers=auth_headers,
                                 json={'content': 'Rules'})).json()
        await client.post('/api/v1/community/messages', headers=auth_headers, json={'content': 'Newer'})
        await client.post(f"/api/v1/community/messages/{old['id']}/pin", headers=moderator_auth_headers)

        listing = await client.get('/api/v1/community/messages', headers=auth_headers)
        assert listing.json()['items'][0]['id'] == old['id']

    @pytest.mark.asyncio
    async def test_trending_topics(self, client: AsyncClient, auth_headers):
        for topic in ['exams', 'exams', 'hostel']:
            await client.post('/api/v1/community/messages', headers=auth_headers,
                              json={'content': 'x', 'topic': topic})

        response = await client.get('/api/v1/community/topics', headers=auth_headers)
        assert response.json()[0] == {'topic': 'exams', 'count': 2}

    @pytest.mark.asyncio
    async def test_board_requires_login(self, client: AsyncClient):
        response = await client.get('/api/v1/community/messages')
        assert response.status_code in [401, 403]
