"""
i18n.py
-------

Display strings and the default REG tag lists for the two supported
languages. Currency is always BRL; only the number format changes.
"""

from typing import Dict, List

LANGUAGES = ("pt", "en")
DEFAULT_LANGUAGE = "pt"

DEFAULT_TRIGGERS: Dict[str, List[str]] = {
    "en": ["Lock (High)", "Lock (Low)", "2-2-1", "Hidden Pivot"],
    "pt": ["Cadeado (Alta)", "Cadeado (Baixa)", "2-2-1", "Pivot Disfarçado"],
}

DEFAULT_REGIONS: Dict[str, List[str]] = {
    "en": ["Cheap", "Expensive", "Consolidation"],
    "pt": ["Barata", "Cara", "Consolidação"],
}

TRANSLATIONS: Dict[str, Dict[str, object]] = {
    "en": {
        "title": "REG Trade Journal",
        "toggle_lang": "Mudar para Português",
        "new_operation": "New Operation",
        "update_operation": "Update Operation",
        "asset": "Asset (e.g., WINFUT)",
        "side": "Side",
        "buy": "Buy",
        "sell": "Sell",
        "date": "Date",
        "lots": "Lots (Qty)",
        "entry_price": "Entry Price",
        "exit_price": "Exit Price",
        "point_value": "Value per Point",
        "region": "Region",
        "add_new_region": "Enter new region",
        "structure": "Structure (A-B-C)",
        "trigger": "Trigger",
        "add_new_trigger": "Enter new trigger",
        "add_operation": "Add Operation",
        "cancel_edit": "Cancel",
        "dashboard": "Dashboard",
        "reg_analysis": "REG Analysis",
        "trigger_performance": "Performance by Trigger",
        "region_performance": "Performance by Region",
        "side_performance": "Performance by Side",
        "win_rate": "Win Rate",
        "net_result": "Net Result",
        "total_points": "Total Points",
        "total_ops": "Total Operations",
        "total_lots": "Total Lots",
        "max_drawdown": "Max Drawdown",
        "cumulative_result": "Cumulative Result",
        "operations_log": "Operations Log",
        "export_csv": "Export to CSV",
        "import_csv": "Import CSV",
        "break_even": "Break-even",
        "filters": {"all": "All", "today": "Today", "week": "This Week", "month": "This Month"},
        "table": {
            "op": "Op#", "asset": "Asset", "date": "Date", "side": "Side", "lots": "Lots",
            "entry": "Entry", "exit": "Exit", "points": "Points", "result": "Result",
            "status": "Status", "reg": "R-E-G", "actions": "Actions", "edit": "Edit", "delete": "Delete",
        },
        "delete_confirm_title": "Confirm Deletion",
        "delete_confirm_message": "Are you sure you want to permanently delete operation #{op_number} ({asset})?",
        "confirm": "Confirm",
        "cancel": "Cancel",
        "no_data": "No operations recorded for the selected period. Add one or change the filter.",
        "no_chart_data": "Not enough data to display charts.",
        "import_success": "Successfully imported {count} operations.",
        "import_error": "Error importing file: {error}",
        "coach_title": "AI Coach Analysis",
        "coach_loading": "Analyzing your trade...",
        "coach_close": "Close",
    },
    "pt": {
        "title": "Diário de Trades REG",
        "toggle_lang": "Switch to English",
        "new_operation": "Nova Operação",
        "update_operation": "Atualizar Operação",
        "asset": "Ativo (ex: WDOFUT)",
        "side": "Lado",
        "buy": "Compra",
        "sell": "Venda",
        "date": "Data",
        "lots": "Lotes (Qtd)",
        "entry_price": "Preço de Entrada",
        "exit_price": "Preço de Saída",
        "point_value": "Valor por Ponto",
        "region": "Região",
        "add_new_region": "Digite a nova região",
        "structure": "Estrutura (A-B-C)",
        "trigger": "Gatilho",
        "add_new_trigger": "Digite o novo gatilho",
        "add_operation": "Adicionar Operação",
        "cancel_edit": "Cancelar",
        "dashboard": "Painel de Controle",
        "reg_analysis": "Análise REG",
        "trigger_performance": "Performance por Gatilho",
        "region_performance": "Performance por Região",
        "side_performance": "Performance por Lado",
        "win_rate": "Taxa de Acerto",
        "net_result": "Resultado Líquido",
        "total_points": "Total de Pontos",
        "total_ops": "Total de Operações",
        "total_lots": "Total de Lotes",
        "max_drawdown": "Rebaixamento Máximo",
        "cumulative_result": "Resultado Acumulado",
        "operations_log": "Registro de Operações",
        "export_csv": "Exportar para CSV",
        "import_csv": "Importar CSV",
        "break_even": "Zero a Zero",
        "filters": {"all": "Todos", "today": "Hoje", "week": "Esta Semana", "month": "Este Mês"},
        "table": {
            "op": "Op#", "asset": "Ativo", "date": "Data", "side": "Lado", "lots": "Lotes",
            "entry": "Entrada", "exit": "Saída", "points": "Pontos", "result": "Resultado",
            "status": "Status", "reg": "R-E-G", "actions": "Ações", "edit": "Editar", "delete": "Excluir",
        },
        "delete_confirm_title": "Confirmar Exclusão",
        "delete_confirm_message": "Tem certeza que deseja excluir permanentemente a operação #{op_number} ({asset})?",
        "confirm": "Confirmar",
        "cancel": "Cancelar",
        "no_data": "Nenhuma operação registrada para o período selecionado. Adicione uma ou mude o filtro.",
        "no_chart_data": "Dados insuficientes para exibir gráficos.",
        "import_success": "Importadas {count} operações com sucesso.",
        "import_error": "Erro ao importar arquivo: {error}",
        "coach_title": "Análise do Coach de IA",
        "coach_loading": "Analisando sua operação...",
        "coach_close": "Fechar",
    },
}


def translations(lang: str) -> Dict[str, object]:
    return TRANSLATIONS.get(lang, TRANSLATIONS[DEFAULT_LANGUAGE])


def side_labels(lang: str) -> Dict[str, str]:
    t = translations(lang)
    return {"Buy": t["buy"], "Sell": t["sell"]}
