import streamlit as st

from egg_quality import config, ui
from egg_quality.chat import ask_quality_expert, build_chat_model, build_data_context
from egg_quality.errors import ChatServiceError
from egg_quality.quality_engine import global_averages
from egg_quality.session import ChatMessage
from egg_quality.standards import METRIC_FIELDS

state, records = ui.bootstrap("AI Assistant", "🤖")
criteria, filtered = ui.filtered_records(records)

st.title("🤖 Ask the Quality Expert")
st.markdown("Ask about the averages and trends of the current selection. Only the summary below is shared with the model.")

data_context = build_data_context(criteria, global_averages(filtered, METRIC_FIELDS), len(filtered))
with st.expander("🔧 Data context sent to the assistant", expanded=False):
    st.code(data_context, language=None)

if st.sidebar.button("🧹 Clear conversation"):
    state.chat_history = []

if not state.chat_history:
    st.info('Example: "What does a low breaking strength mean for this breed?"')

for message in state.chat_history:
    with st.chat_message("user" if message.role == "user" else "assistant"):
        st.markdown(message.text)

question = st.chat_input("Write your question for the expert...")
if question:
    state.chat_history.append(ChatMessage(role="user", text=question))
    with st.chat_message("user"):
        st.markdown(question)

    with st.chat_message("assistant"):
        with st.spinner("Analyzing your data..."):
            try:
                llm = build_chat_model(config.get_setting("OPENAI_API_KEY"), config.get_setting("OPENAI_MODEL"))
                answer = ask_quality_expert(question, data_context, llm)
            except ChatServiceError as e:
                st.error(f"❌ {e}")
                answer = "Error communicating with the expert."
            else:
                st.markdown(answer)
    state.chat_history.append(ChatMessage(role="model", text=answer))

# --- Sample Questions ---
st.sidebar.header("💡 Sample Questions")
sample_questions = [
    "Is the average shell thickness acceptable?",
    "Which metric is furthest from the optimal range?",
    "What could explain low Haugh units?",
    "How does yolk color relate to feed pigments?",
]
for sample in sample_questions:
    st.sidebar.caption(f"💬 {sample}")
