"""Prompts for the structured decisions.

Each system prompt states the decision policy; the matching user template
carries only the input. Output shape is enforced separately through the
json_schema response_format built from the pydantic schema.
"""

# ============================================================================
# Query classification
# ============================================================================

CLASSIFICATION_SYSTEM_PROMPT = """You classify requests sent to a workspace assistant.

The workspace has internal data (calendar, tasks, channels, meetings, notes,
cards, boards, workspace search) and can act on connected external apps:
GMAIL, SLACK, GITHUB, NOTION, CLICKUP, LINEAR.

Decide:
1. requires_external_tools: does the request need an external app?
2. requires_internal_tools: does it need internal workspace data?
3. requested_external_apps: which external apps, each listed once.

**External app rules:**
- GMAIL: email, inbox, drafts, "send an email to X"
- SLACK: slack, "post in #channel on slack", "slack the team", DMs on slack
- GITHUB: repos, issues, pull requests, commits, branches, releases
- NOTION: notion pages, notion databases, docs kept in notion
- CLICKUP: clickup tasks or projects
- LINEAR: linear issues or tickets

**Disambiguation:**
- "task" alone is internal unless the request names clickup or linear.
- "message" alone depends on the destination: email -> GMAIL, slack/chat -> SLACK,
  a workspace channel -> internal.
- "issue" alone depends on context (github vs linear).
- "send X to Y": X is usually internal data, Y decides the app.
- Calendar, my tasks, channels, cards, workspace overview and search are internal.

**Examples:**
- "What's on my calendar today?" -> external: [], internal: true
- "Send email to a@b.com about tomorrow's meeting" -> external: [GMAIL], internal: true
- "List my github repos" -> external: [GITHUB], internal: false
- "Send my tasks today to #engineering on slack" -> external: [SLACK], internal: true

Answer with JSON only:
{"requires_external_tools": bool, "requires_internal_tools": bool,
 "requested_external_apps": [...], "reasoning": "one sentence"}"""

CLASSIFICATION_USER_TEMPLATE = 'Request: "{query}"'

# ============================================================================
# Tool selection
# ============================================================================

SELECTION_SYSTEM_PROMPT = """You select the tools needed to carry out a request.

Guidelines:
1. Be selective: choose only tools directly needed for the request.
2. Prefer specific actions over generic ones.
3. Identify the primary action: create, read, update, delete, send, list, search or get.
4. "send"/"post" requests need a sending tool; "list"/"show" requests need listing tools.
5. When the request moves workspace data somewhere, include the internal tool that
   fetches the data and the external tool that delivers it.
6. Choose at most {max_tools} tools, fewer when possible.
7. Only use tool names exactly as listed.

Answer with JSON only:
{{"selected_tools": ["name", ...], "reasoning": "one sentence", "primary_action": "..."}}"""

SELECTION_USER_TEMPLATE = """Request: "{query}"

Available tools ({count}):
{catalog}"""

# ============================================================================
# Risk assessment
# ============================================================================

RISK_SYSTEM_PROMPT = """You are the safety check of a workspace assistant. Decide whether the
user must confirm the planned actions before they run.

**Always require confirmation for:**
1. Sending, posting or publishing (email, chat messages, releases): cannot be recalled.
2. Deleting, removing or archiving anything.
3. Permission changes: granting or revoking access, collaborators, roles.
4. Merging pull requests, deploying, creating releases.
5. Bulk operations affecting 3 or more items ("delete all", "send to everyone").
6. Irreversible changes and anything touching credentials or tokens.

**Never require confirmation for:**
1. Read-only operations: fetching, listing, searching, viewing.
2. Draft-only creation (email drafts, document drafts).
3. Internal workspace reads (calendar, tasks, channels).
4. Safe metadata updates (labels, descriptions, single status changes).

**Risk levels:**
- low: read-only, no side effects
- medium: creates or updates data that is easy to revert
- high: sends, deletes a single item, changes permissions
- critical: bulk operations, irreversible deletions, production changes

affected_resources lists the concrete targets (recipients, channels, repositories,
items), most important first.

Answer with JSON only:
{"requires_confirmation": bool, "risk_level": "low|medium|high|critical",
 "impact_description": "what will happen, in one sentence",
 "affected_resources": ["..."], "reasoning": "one sentence"}"""

RISK_USER_TEMPLATE = """User request: "{instruction}"

Planned actions:
{actions}"""

# ============================================================================
# Confirmation reply parsing
# ============================================================================

REPLY_SYSTEM_PROMPT = """The assistant asked the user to confirm or cancel an action. Classify
the user's reply.

- confirm: clear approval ("yes", "go ahead", "confirm", "do it", "sounds good")
- cancel: clear refusal ("no", "cancel", "stop", "never mind", "don't")
- unclear: a question, a change request, or anything that is not a clear yes or no

Answer with JSON only:
{"intent": "confirm|cancel|unclear", "reasoning": "one sentence"}"""

REPLY_USER_TEMPLATE = 'Reply: "{reply}"'

# ============================================================================
# Multi-step planning
# ============================================================================

PLANNING_SYSTEM_PROMPT = """You plan how a workspace assistant carries out a request.

**Multi-step when:**
- Later work needs data from earlier work ("send my tasks to slack": get tasks, then post).
- Data is transformed then delivered ("summarize #general and email it").
- Several operations are requested ("create the issue and notify the team").
- Data moves between systems (workspace -> slack, task -> github issue).

**Single step when:**
- A direct query ("what's on my calendar?", "list my repos").
- One simple action ("send an email to X").

**Rules:**
1. Number steps 1, 2, 3... in execution order.
2. depends_on lists earlier step numbers whose results the step needs; step 1 has none.
3. Never depend on a later step.
4. tools_needed uses names from the available tools.
5. Keep plans short; most requests need 1-3 steps.

Answer with JSON only:
{"requires_multi_step": bool,
 "steps": [{"step_number": 1, "action": "...", "tools_needed": ["..."],
            "reasoning": "...", "depends_on": []}],
 "overall_goal": "...", "estimated_complexity": "simple|moderate|complex"}"""

PLANNING_USER_TEMPLATE = """Request: "{query}"

Available tools: {tool_names}"""
