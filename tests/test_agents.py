"""Tests for the Slack, Teams and Discord agents."""

from unittest.mock import MagicMock

import httpx
import pytest

from agent_connectors.agents.discord.agent.handlers import DiscordAgent
from agent_connectors.agents.discord.agent.handlers import instantiate as instantiate_discord
from agent_connectors.agents.slack.agent.handlers import SlackAgent
from agent_connectors.agents.slack.agent.handlers import instantiate as instantiate_slack
from agent_connectors.agents.teams.agent.handlers import instantiate as instantiate_teams
from agent_connectors.clients.discord_client import DiscordClient
from agent_connectors.clients.graph import GraphClient
from agent_connectors.clients.slack_client import SlackClient
from agent_connectors.clients.teams_client import TeamsClient
from agent_connectors.core.exceptions import UnknownActionError, UnknownCommandError
from agent_connectors.core.models import ActionContext, AppAction, FileAttachment, SessionContext


async def enable(agent) -> ActionContext:
    """Create and enable an agent context for a new session."""
    session = SessionContext(agent_context=await agent.initialize_agent_context())
    await agent.update_agent_context(True, session)
    return ActionContext(session)


class TestSlackAgent:
    """Tests for the Slack action handler."""

    @pytest.fixture
    def slack(self):
        client = MagicMock(spec=SlackClient)
        client.is_initialized.return_value = True
        client.find_channel_id_by_name.return_value = "C123"
        client.send_message.return_value = True
        client.create_channel.return_value = True
        return client

    @pytest.fixture
    def agent(self, slack):
        return instantiate_slack(client_factory=lambda: slack)

    def test_instantiate(self, agent):
        """Test the factory builds a Slack agent with a login command."""
        assert isinstance(agent, SlackAgent)
        assert agent.commands.default_sub_command == "login"

    @pytest.mark.asyncio
    async def test_not_logged_in(self, agent, slack):
        """Test an uninitialized client yields the login hint."""
        slack.is_initialized.return_value = False
        context = await enable(agent)

        result = await agent.execute_action(
            AppAction("sendMessageInSlack", {"channelName": "general", "message": "hi"}),
            context,
        )

        assert result.error == "Use @slack login to log into Slack."
        slack.send_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_disabled_context(self, agent):
        """Test a session that was never enabled."""
        session = SessionContext(agent_context=await agent.initialize_agent_context())
        result = await agent.execute_action(
            AppAction("createChannelInSlack", {"channelName": "x"}), ActionContext(session)
        )
        assert result.is_error

    @pytest.mark.asyncio
    async def test_send_message(self, agent, slack):
        """Test channel resolution then send."""
        context = await enable(agent)
        attachments = [{"text": "details"}]

        result = await agent.execute_action(
            AppAction(
                "sendMessageInSlack",
                {"channelName": "launch", "message": "We ship today", "attachments": attachments},
            ),
            context,
        )

        assert not result.is_error
        assert result.display_content == "<div>Message sent successfully in Slack.</div>"
        slack.find_channel_id_by_name.assert_awaited_once_with("launch")
        slack.send_message.assert_awaited_once_with("C123", "We ship today", attachments)

    @pytest.mark.asyncio
    async def test_channel_not_found(self, agent, slack):
        """Test resolution failure names the channel and skips the send."""
        slack.find_channel_id_by_name.return_value = None
        context = await enable(agent)

        result = await agent.execute_action(
            AppAction("sendMessageInSlack", {"channelName": "nowhere", "message": "hi"}),
            context,
        )

        assert result.error == "Channel not found for name: nowhere"
        slack.send_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_send_failure(self, agent, slack):
        """Test a failed send is rendered as an error."""
        slack.send_message.return_value = False
        context = await enable(agent)

        result = await agent.execute_action(
            AppAction("sendMessageInSlack", {"channelName": "general", "message": "hi"}),
            context,
        )
        assert result.is_error

    @pytest.mark.asyncio
    async def test_create_channel(self, agent, slack):
        """Test channel creation."""
        context = await enable(agent)

        result = await agent.execute_action(
            AppAction("createChannelInSlack", {"channelName": "Launch", "isPrivate": True}),
            context,
        )

        assert result.display_content == "<div>Channel created successfully.</div>"
        slack.create_channel.assert_awaited_once_with("Launch", True)

    @pytest.mark.asyncio
    async def test_create_channel_failure(self, agent, slack):
        """Test a failed creation is rendered as an error."""
        slack.create_channel.return_value = False
        context = await enable(agent)

        result = await agent.execute_action(
            AppAction("createChannelInSlack", {"channelName": "!!!"}), context
        )
        assert result.error == "Error encountered when creating channel!"

    @pytest.mark.asyncio
    async def test_invalid_parameters(self, agent, slack):
        """Test missing parameters are rendered, not raised."""
        context = await enable(agent)

        result = await agent.execute_action(AppAction("sendMessageInSlack", {"message": "hi"}), context)

        assert result.is_error
        assert "channelName" in result.error
        slack.find_channel_id_by_name.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_action_raises(self, agent):
        """Test unknown action names escape the handler."""
        context = await enable(agent)

        with pytest.raises(UnknownActionError) as exc_info:
            await agent.execute_action(AppAction("deleteWorkspace", {}), context)
        assert exc_info.value.action_name == "deleteWorkspace"

    @pytest.mark.asyncio
    async def test_disable_drops_client(self, agent, slack):
        """Test disabling clears the client."""
        context = await enable(agent)
        await agent.update_agent_context(False, context.session_context)
        assert context.agent_context.client is None

    @pytest.mark.asyncio
    async def test_login_command(self, agent, slack):
        """Test the login command forces a login when not initialized."""
        slack.is_initialized.side_effect = [False, True]
        context = await enable(agent)

        result = await agent.execute_command([], context)

        slack.initialize.assert_awaited_once_with(force_login=True)
        assert not result.is_error

    @pytest.mark.asyncio
    async def test_login_skipped_when_initialized(self, agent, slack):
        """Test the login command does nothing for an initialized client."""
        context = await enable(agent)
        await agent.execute_command(["login"], context)
        slack.initialize.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_command(self, agent):
        """Test unknown commands raise."""
        context = await enable(agent)
        with pytest.raises(UnknownCommandError):
            await agent.execute_command(["logout"], context)

    @pytest.mark.asyncio
    async def test_real_client_empty_token(self, monkeypatch):
        """Test an agent enabled without SLACK_BOT_TOKEN asks for login."""
        monkeypatch.delenv("SLACK_BOT_TOKEN", raising=False)
        agent = instantiate_slack()
        context = await enable(agent)

        assert isinstance(context.agent_context.client, SlackClient)
        result = await agent.execute_action(
            AppAction("createChannelInSlack", {"channelName": "general"}), context
        )
        assert result.error == "Use @slack login to log into Slack."


class TestTeamsAgent:
    """Tests for the Teams action handler."""

    @pytest.fixture
    def teams(self):
        client = MagicMock(spec=TeamsClient)
        client.is_initialized.return_value = True
        client.get_caller_id.return_value = "me"
        client.find_user_ids_by_names.return_value = ["alice-id"]
        client.create_or_find_1on1_chat.return_value = "dm-chat"
        client.create_or_find_conversation.return_value = "group-chat"
        client.send_message.return_value = True
        return client

    @pytest.fixture
    def agent(self, teams):
        return instantiate_teams(client_factory=lambda: teams)

    @pytest.mark.asyncio
    async def test_not_logged_in(self, agent, teams):
        """Test the login hint for Teams."""
        teams.is_initialized.return_value = False
        context = await enable(agent)

        result = await agent.execute_action(
            AppAction("sendMessage", {"recipients": ["Alice"], "message": "hi"}), context
        )

        assert result.error == "Use @teams login to log into MS Graph."
        teams.get_caller_id.assert_not_called()

    @pytest.mark.asyncio
    async def test_one_recipient_uses_1on1_chat(self, agent, teams):
        """Test a single recipient resolves to a one-on-one chat."""
        context = await enable(agent)

        result = await agent.execute_action(
            AppAction("sendMessage", {"recipients": ["Alice"], "message": "hi"}), context
        )

        assert result.display_content == "<div>Message sent successfully in Teams.</div>"
        teams.create_or_find_1on1_chat.assert_awaited_once_with("me", "alice-id")
        teams.create_or_find_conversation.assert_not_called()
        teams.send_message.assert_awaited_once_with(["dm-chat"], "hi", [])

    @pytest.mark.asyncio
    async def test_several_recipients_use_group_chat(self, agent, teams):
        """Test several recipients resolve to a group chat."""
        teams.find_user_ids_by_names.return_value = ["alice-id", "bob-id"]
        context = await enable(agent)

        await agent.execute_action(
            AppAction("sendMessage", {"recipients": ["Alice", "Bob"], "message": "hi"}), context
        )

        teams.create_or_find_conversation.assert_awaited_once_with("me", ["alice-id", "bob-id"])
        teams.send_message.assert_awaited_once_with(["group-chat"], "hi", [])

    @pytest.mark.asyncio
    async def test_caller_id_cached(self, agent, teams):
        """Test the caller ID is looked up once per session."""
        context = await enable(agent)
        action = AppAction("sendMessage", {"recipients": ["Alice"], "message": "hi"})

        await agent.execute_action(action, context)
        await agent.execute_action(action, context)

        teams.get_caller_id.assert_awaited_once()
        assert context.agent_context.caller_id == "me"

    @pytest.mark.asyncio
    async def test_caller_id_unavailable(self, agent, teams):
        """Test a missing caller ID stops before any lookup."""
        teams.get_caller_id.return_value = None
        context = await enable(agent)

        result = await agent.execute_action(
            AppAction("sendMessage", {"recipients": ["Alice"], "message": "hi"}), context
        )

        assert result.error == "Unable to retrieve caller ID."
        teams.find_user_ids_by_names.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_users_found(self, agent, teams):
        """Test resolution failure lists the names."""
        teams.find_user_ids_by_names.return_value = []
        context = await enable(agent)

        result = await agent.execute_action(
            AppAction("sendMessage", {"recipients": ["Zed"], "message": "hi"}), context
        )

        assert result.error == "No valid users found for conversation: Zed"
        teams.send_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_chat_not_created(self, agent, teams):
        """Test chat resolution failure."""
        teams.create_or_find_1on1_chat.return_value = None
        context = await enable(agent)

        result = await agent.execute_action(
            AppAction("sendMessage", {"recipients": ["Alice"], "message": "hi"}), context
        )

        assert result.error == "Failed to create or retrieve chat with specified users."
        teams.send_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_send_failure(self, agent, teams):
        """Test a failed send."""
        teams.send_message.return_value = False
        context = await enable(agent)

        result = await agent.execute_action(
            AppAction("sendMessage", {"recipients": ["Alice"], "message": "hi"}), context
        )
        assert result.error == "Error sending message in Teams."

    @pytest.mark.asyncio
    async def test_attachments_parsed(self, agent, teams):
        """Test attachment records become FileAttachments."""
        context = await enable(agent)

        await agent.execute_action(
            AppAction(
                "sendMessage",
                {
                    "recipients": ["Alice"],
                    "message": "see attached",
                    "attachments": [{"filePath": "/tmp/a.pdf", "contentType": "application/pdf"}],
                },
            ),
            context,
        )

        teams.send_message.assert_awaited_once_with(
            ["dm-chat"], "see attached", [FileAttachment("/tmp/a.pdf", "application/pdf")]
        )

    @pytest.mark.asyncio
    async def test_attachment_without_path_rejected(self, agent, teams):
        """Test attachments without filePath are rejected before sending."""
        context = await enable(agent)

        result = await agent.execute_action(
            AppAction(
                "sendMessage",
                {"recipients": ["Alice"], "message": "hi", "attachments": [{"url": "http://x"}]},
            ),
            context,
        )

        assert result.is_error
        assert "filePath" in result.error
        teams.send_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_action_raises(self, agent):
        """Test unknown Teams actions escape the handler."""
        context = await enable(agent)
        with pytest.raises(UnknownActionError):
            await agent.execute_action(AppAction("scheduleMeeting", {}), context)


class TestDiscordAgent:
    """Tests for the Discord action handler."""

    @pytest.fixture
    def discord_client(self):
        client = MagicMock(spec=DiscordClient)
        client.default_guild_id = "42"
        client.is_initialized.return_value = True
        client.find_channel_id_by_name.return_value = "7"
        client.send_message.return_value = True
        client.create_channel.return_value = True
        return client

    @pytest.fixture
    def agent(self, discord_client):
        return instantiate_discord(client_factory=lambda: discord_client)

    @pytest.mark.asyncio
    async def test_enable_logs_in(self, agent, discord_client):
        """Test enabling the agent performs the token login."""
        assert isinstance(agent, DiscordAgent)
        await enable(agent)
        discord_client.initialize.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_send_message(self, agent, discord_client):
        """Test channel resolution then send."""
        context = await enable(agent)

        result = await agent.execute_action(
            AppAction("sendMessageInDiscord", {"channelName": "general", "message": "hi"}),
            context,
        )

        assert not result.is_error
        discord_client.find_channel_id_by_name.assert_awaited_once_with("42", "general")
        discord_client.send_message.assert_awaited_once_with("7", "hi")

    @pytest.mark.asyncio
    async def test_create_private_channel(self, agent, discord_client):
        """Test private channel creation."""
        context = await enable(agent)

        await agent.execute_action(
            AppAction("createChannelInDiscord", {"channelName": "secret", "isPrivate": True}),
            context,
        )
        discord_client.create_channel.assert_awaited_once_with("42", "secret", True)

    @pytest.mark.asyncio
    async def test_missing_guild(self, agent, discord_client):
        """Test actions without a configured server."""
        discord_client.default_guild_id = None
        context = await enable(agent)

        result = await agent.execute_action(
            AppAction("createChannelInDiscord", {"channelName": "x"}), context
        )
        assert result.is_error
        discord_client.create_channel.assert_not_called()

    @pytest.mark.asyncio
    async def test_disable_closes_client(self, agent, discord_client):
        """Test disabling closes the Discord session."""
        context = await enable(agent)
        await agent.update_agent_context(False, context.session_context)

        discord_client.close.assert_awaited_once()
        assert context.agent_context.client is None

    @pytest.mark.asyncio
    async def test_unknown_action_raises(self, agent):
        """Test unknown Discord actions escape the handler."""
        context = await enable(agent)
        with pytest.raises(UnknownActionError):
            await agent.execute_action(AppAction("banUser", {}), context)


def graph_handler(request: httpx.Request) -> httpx.Response:
    """Graph API answering every Teams lookup with one user and no chats."""
    path = request.url.path.removeprefix("/v1.0")
    if path == "/me":
        return httpx.Response(200, json={"id": "me"})
    if path == "/users":
        return httpx.Response(200, json={"value": [{"id": "alice-id"}]})
    if path == "/me/chats":
        return httpx.Response(200, json={"value": []})
    if path == "/chats":
        return httpx.Response(201, json={"id": "dm-chat"})
    return httpx.Response(201, json={"id": "msg"})


@pytest.mark.asyncio
async def test_teams_unreadable_attachment_path_still_sends():
    """Test an attachment path with a NUL byte yields a result, not an exception."""

    def client_factory():
        http = httpx.AsyncClient(transport=httpx.MockTransport(graph_handler))
        return TeamsClient(GraphClient(access_token="token", http_client=http))

    agent = instantiate_teams(client_factory=client_factory)
    context = await enable(agent)

    result = await agent.execute_action(
        AppAction(
            "sendMessage",
            {"recipients": ["Alice"], "message": "hi", "attachments": [{"filePath": "/tmp/a\x00b.txt"}]},
        ),
        context,
    )

    assert result.display_content == "<div>Message sent successfully in Teams.</div>"
