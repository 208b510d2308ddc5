"""LLM prompts for dish search and conversation turns."""

IMAGE_SEARCH_HEADER = """Analyze the attached food image and find similar dishes in the restaurant database.
Additional user query: "{query}"
Return up to {limit} matches."""

TEXT_SEARCH_HEADER = """You are a Georgian cuisine expert. Find dishes matching the query: "{query}"
Return up to {limit} matches."""

IMAGE_INSTRUCTIONS = """IMAGE ANALYSIS MODE:
- First identify the dish or cuisine shown in the image.
- Then search the restaurant database for ACTUAL dishes that match it.
- Return matching database entries, never a description of the image.
- If nothing in the database is similar, return an empty results list."""

PREFERENCES_BLOCK = """USER PREFERENCES AND ALLERGIES (standing constraints, apply to every turn until the user lifts them):
"{preferences}\""""

PRIOR_SELECTION_BLOCK = """CURRENT SELECTION (what the user has chosen so far):
{selection}"""

SELECTION_POLICY = """SELECTION RULES:
1. Exploration is the default. When the user names a dish category ("I want khinkali"),
   return ALL matching dishes in that category from all restaurants, not a subset.
2. Selection. When the user commits to one item among alternatives already shown
   ("I'll take the beef khinkali"), keep ONLY that item for its category and drop its
   siblings. Dishes from other categories stay selected.
3. Addition ("also", "add", "more") keeps the whole current selection and appends
   the newly requested dishes or categories.
4. Removal only happens on an explicit request ("remove X", "I don't want X").
   Remove only the named dishes. Never drop anything implicitly.
5. Replacement ("instead", "something different") swaps the named category for the
   new request.
6. Allergies and preferences, once stated, filter every later turn until the user
   takes them back.
7. Never return the same (restaurant_id, dish_name) pair twice.
8. Return at most {limit} dishes in total.
9. Copy restaurant_id, restaurant_name, dish_name and dish_price exactly as they
   appear in the database. Never invent dishes.

EXAMPLE:
User: "I want khinkali" -> all khinkali from every restaurant
User: "I'll take the beef khinkali" -> only the beef khinkali remains
User: "drinks too" -> beef khinkali + all drinks
User: "no drinks" -> beef khinkali only"""

SELECTION_OUTPUT_FORMAT = """OUTPUT FORMAT (JSON ONLY, the COMPLETE selection after this turn):
{{
  "results": [
    {{
      "restaurant_id": "...",
      "restaurant_name": "...",
      "dish_name": "...",
      "dish_price": 0.00
    }}
  ],
  "operation_performed": "added" | "filtered" | "replaced" | "removed" | "no_change"
}}"""

SEARCH_PROMPT = """{header}

USER REQUEST: "{query}"

RESTAURANT DATA (available dishes):
{catalog}

{sections}

{policy}

{output_format}"""

TURN_INTERPRETATION_PROMPT = """You classify one turn of a conversation in which a user builds a food order.
You do NOT decide the final selection. Report what the user asked for this turn.

USER REQUEST: "{query}"

RESTAURANT DATA (available dishes):
{catalog}

{sections}

Intents:
- explore: user names a dish category or asks what is available
- select: user commits to specific dishes among alternatives already shown
- add: user wants dishes in addition to the current selection
- remove: user explicitly asks to remove dishes
- replace: user wants something different instead of a category
- query: user asks about the current selection without changing it

Rules:
- "results" lists the database dishes this turn refers to: every dish of the named
  category for explore/add/replace, the chosen dishes for select, the dishes to drop
  for remove, nothing for query.
- "category" is a short lowercase name of the dish category the turn is about
  (e.g. "khinkali", "drinks"), or null.
- "constraints" lists newly stated allergies or ingredients to avoid (e.g. "pork", "nuts").
- "lifted_constraints" lists constraints the user takes back.
- Copy restaurant_id, restaurant_name, dish_name and dish_price exactly from the database.
- Return at most {limit} dishes and never the same dish twice.

OUTPUT FORMAT (JSON ONLY):
{{
  "intent": "explore" | "select" | "add" | "remove" | "replace" | "query",
  "category": "..." | null,
  "results": [
    {{
      "restaurant_id": "...",
      "restaurant_name": "...",
      "dish_name": "...",
      "dish_price": 0.00
    }}
  ],
  "constraints": ["..."],
  "lifted_constraints": ["..."]
}}"""
