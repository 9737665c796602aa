SYSTEM_PROMPT = """Eres BUBU, un asistente de finanzas personales por chat.
Tu trabajo es interpretar el mensaje del usuario y llamar a la función que
corresponde a lo que quiere hacer. Responde siempre llamando una función.

Fecha actual: {today}
Categorías disponibles: {categories}

Periodos:
- "este mes", "en lo que va del mes", "cuánto llevo" -> period: current_month
- "mes pasado", "mes anterior" -> period: previous_month
- "esta semana" -> period: current_week
- "hoy" -> period: today
- sin periodo al listar movimientos -> period: all
- fechas específicas -> start_date y end_date en formato YYYY-MM-DD

Fechas relativas (ayer, antier, hoy) se convierten a YYYY-MM-DD.

Ejemplos:
- "gasté 350 en tacos" -> register_transaction (type: expense, amount: 350, category: Comida)
- "ayer pagué 200 de uber" -> register_transaction (type: expense, amount: 200, category: Transporte, date: ayer)
- "me cayó la nómina de 15000" -> register_transaction (type: income, amount: 15000, category: Nómina)
- "pagué 1000 de súper con mi pareja" -> register_transaction (shared: true, payer: user)
- "mi pareja pagó la cena de 800, 60/40" -> register_transaction (shared: true, payer: partner, user_split: 60, partner_split: 40)
- "no, era transporte" -> correct_last_transaction (field: category, value: Transporte)
- "¿cómo voy este mes?" -> query_summary (period: current_month)
- "muestra mis gastos en comida" -> list_transactions (category: Comida, type: expense, period: all)
- "elimina el 2" -> delete_transaction (number: 2)
- "cambia el 1 a 500" -> edit_transaction (number: 1, new_amount: 500)
- "mi pareja es 5512345678" -> register_partner (partner_phone: 5512345678)
- "acepto" (solicitud de pareja) -> accept_partner_request
- "¿cuánto me debe mi pareja?" -> query_balance (period: current_month)
- "ahora dividimos 70/30" -> update_default_split (user_split: 70, partner_split: 30)
- "mueve los gastos de Hogar a Servicios" -> move_transactions (from_category: Hogar, to_category: Servicios)
- "hola", "gracias" -> general_conversation

Si dice "tacos", "pizza", "restaurante" la categoría es Comida.
Si dice "uber", "gasolina", "taxi" la categoría es Transporte."""

RECEIPT_PROMPT = """Analiza este ticket de compra y extrae la siguiente información en formato JSON:

{
  "amount": <monto total en número o null>,
  "merchant": "<nombre del comercio>",
  "category": "<Comida|Transporte|Entretenimiento|Servicios|Salud|Educación|Ropa|Hogar|Otros Gastos>",
  "date": "<fecha en formato YYYY-MM-DD si está visible, null si no>",
  "description": "<descripción breve del gasto>",
  "confidence": <0-100, qué tan seguro estás de los datos extraídos>
}

Usa siempre el TOTAL del ticket (incluye propina), nunca el SUBTOTAL.
Si no puedes leer el monto claramente, pon null.
Gasolineras son Transporte; restaurantes y supermercados son Comida;
farmacias son Salud; luz, agua, gas, internet y celular son Servicios.

Responde SOLO con el JSON, sin texto adicional."""


def _tool(name: str, description: str, properties: dict | None = None, required: tuple = ()) -> dict:
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": description,
            "parameters": {
                "type": "object",
                "properties": properties or {},
                "required": list(required),
            },
        },
    }


_STRING = {"type": "string"}
_NUMBER = {"type": "number"}
_PERIOD = {
    "type": "string",
    "enum": ["current_month", "previous_month", "current_week", "today", "all"],
}
_TYPE = {"type": "string", "enum": ["expense", "income"]}
_FIELD = {"type": "string", "enum": ["category", "amount", "description", "date"]}


def build_tools(categories: list[str]) -> list[dict]:
    """Function-calling schema, one tool per intent."""
    category = {"type": "string", "description": "Nombre de la categoría"}
    if categories:
        category["enum"] = categories

    return [
        _tool(
            "register_transaction",
            "Registra un gasto o ingreso (gasté, pagué, me pagaron, recibí).",
            {
                "type": _TYPE,
                "amount": _NUMBER,
                "description": _STRING,
                "category": category,
                "date": {"type": "string", "description": "YYYY-MM-DD o hoy/ayer/antier"},
                "shared": {"type": "boolean", "description": "Gasto compartido con la pareja"},
                "payer": {"type": "string", "enum": ["user", "partner"]},
                "user_split": _NUMBER,
                "partner_split": _NUMBER,
            },
            required=("type", "amount"),
        ),
        _tool("confirm_transaction", "El usuario confirma la transacción pendiente."),
        _tool("cancel_transaction", "El usuario cancela la transacción pendiente."),
        _tool(
            "correct_last_transaction",
            "Corrige un campo de la última transacción registrada.",
            {"field": _FIELD, "value": _STRING},
            required=("field", "value"),
        ),
        _tool(
            "edit_transaction",
            "Cambia el monto de una transacción de la última lista mostrada.",
            {"number": _NUMBER, "new_amount": _NUMBER},
            required=("number",),
        ),
        _tool(
            "delete_transaction",
            "Elimina una transacción de la última lista mostrada.",
            {"number": _NUMBER},
            required=("number",),
        ),
        _tool(
            "list_transactions",
            "Muestra la lista detallada de transacciones.",
            {
                "category": category,
                "type": {"type": "string", "enum": ["expense", "income", "all"]},
                "period": _PERIOD,
                "start_date": _STRING,
                "end_date": _STRING,
                "limit": _NUMBER,
            },
        ),
        _tool(
            "query_summary",
            "Resumen de ingresos, gastos y balance de un periodo.",
            {
                "period": _PERIOD,
                "start_date": _STRING,
                "end_date": _STRING,
                "category": category,
                "type": _TYPE,
            },
        ),
        _tool("list_categories", "Muestra las categorías.", {"type": _TYPE}),
        _tool(
            "create_category",
            "Crea una categoría nueva.",
            {"name": _STRING, "type": _TYPE, "icon": _STRING, "color": _STRING},
            required=("name",),
        ),
        _tool("delete_category", "Elimina una categoría.", {"name": _STRING}, required=("name",)),
        _tool(
            "move_transactions",
            "Mueve todas las transacciones de una categoría a otra.",
            {"from_category": _STRING, "to_category": _STRING},
            required=("from_category", "to_category"),
        ),
        _tool(
            "register_partner",
            "Envía una solicitud para compartir gastos con otra persona.",
            {"partner_phone": _STRING, "user_split": _NUMBER, "partner_split": _NUMBER},
            required=("partner_phone",),
        ),
        _tool("accept_partner_request", "Acepta una solicitud de pareja.", {"partner_phone": _STRING}),
        _tool("reject_partner_request", "Rechaza una solicitud de pareja.", {"partner_phone": _STRING}),
        _tool("remove_partner", "Termina la relación de gastos compartidos."),
        _tool("query_balance", "Quién le debe a quién en los gastos compartidos.", {"period": _PERIOD}),
        _tool("list_shared_expenses", "Lista los gastos compartidos.", {"period": _PERIOD}),
        _tool(
            "update_default_split",
            "Cambia la división por defecto de los gastos compartidos.",
            {"user_split": _NUMBER, "partner_split": _NUMBER},
        ),
        _tool("confirm_receipt", "Confirma los datos del ticket leído."),
        _tool(
            "correct_receipt",
            "Corrige un dato del ticket leído.",
            {"field": _FIELD, "value": _STRING},
            required=("field", "value"),
        ),
        _tool("provide_amount", "El usuario indica el monto que faltaba.", {"amount": _NUMBER}, required=("amount",)),
        _tool(
            "general_conversation",
            "Saludos, agradecimientos, despedidas o conversación casual.",
            {"message_kind": {"type": "string", "enum": ["saludo", "despedida", "agradecimiento", "otro"]}},
        ),
    ]
